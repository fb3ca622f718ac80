"""
Social API error responses.
Error taxonomy and the handlers that render every failure as
{"error": string, "details"?: string}.
"""
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from .config import get_settings
from .logging_config import api_logger


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ApiException(HTTPException):
    """API exception rendered with the shared error body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.details = details
        self.extra = extra or {}
        super().__init__(status_code=status_code, detail=message, headers=headers)


class ValidationError(ApiException):
    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(400, message, details)


class AuthenticationError(ApiException):
    def __init__(self, message: str = "Authentication required", details: Optional[str] = None):
        super().__init__(401, message, details, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(ApiException):
    def __init__(self, message: str = "Access denied", extra: Optional[Dict[str, Any]] = None):
        super().__init__(403, message, extra=extra)


class NotFoundError(ApiException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(404, message)


class ConflictError(ApiException):
    def __init__(self, message: str = "Resource conflict"):
        super().__init__(409, message)


class InternalError(ApiException):
    def __init__(self, message: str = "Internal server error", details: Optional[str] = None):
        super().__init__(500, message, details)


# Common exceptions
def bad_request(message: str, details: Optional[str] = None):
    raise ValidationError(message, details)

def unauthorized(message: str = "Authentication required"):
    raise AuthenticationError(message)

def forbidden(message: str = "Access denied", **extra):
    raise AuthorizationError(message, extra=extra or None)

def not_found(resource: str = "Resource"):
    raise NotFoundError(f"{resource} not found")

def conflict(message: str = "Resource conflict"):
    raise ConflictError(message)


def error_body(message: str, details: Optional[str] = None, **extra) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    if details:
        body["details"] = details
    return body


def render(exc: ApiException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.details, **exc.extra),
        headers=exc.headers,
    )


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

async def api_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render ApiException and plain HTTPException with the shared body."""
    if not isinstance(exc, ApiException):
        exc = ApiException(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))
    message = exc.message

    if exc.status_code >= 500:
        api_logger.error(f"API Error: {message}", status_code=exc.status_code, path=request.url.path)
    else:
        api_logger.warning(f"API Error: {message}", status_code=exc.status_code, path=request.url.path)

    return render(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request parsing failures are client errors (400), caught before any store access."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))

    api_logger.warning("Validation failed", path=request.url.path, problems=problems)
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", "; ".join(problems)),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures and timeouts surface as a generic 500."""
    api_logger.error(
        "Database error",
        error=exc,
        path=request.url.path,
    )
    return render(InternalError(details=str(exc) if get_settings().debug else None))
