"""
Health check routes.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..logging_config import db_logger

router = APIRouter(prefix="/health", tags=["health"])

START_TIME = datetime.now(timezone.utc)


def get_uptime() -> str:
    """Get service uptime as human-readable string"""
    delta = datetime.now(timezone.utc) - START_TIME
    hours, remainder = divmod(delta.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if delta.days > 0:
        return f"{delta.days}d {hours}h {minutes}m"
    elif hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    else:
        return f"{minutes}m {seconds}s"


@router.get("")
@router.get("/live")
def health_live():
    """
    Liveness probe - is the service running?
    Returns 200 if the service is alive.
    """
    return {
        "status": "healthy",
        "environment": get_settings().environment,
        "uptime": get_uptime(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
def health_ready(db: Session = Depends(get_db)):
    """
    Readiness probe - can the service reach its database?
    """
    try:
        db.execute(text("SELECT 1"))
        database = "healthy"
    except SQLAlchemyError as e:
        db_logger.error("Readiness check failed", error=e)
        database = "unhealthy"

    ready = database == "healthy"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "checks": {"database": database},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
