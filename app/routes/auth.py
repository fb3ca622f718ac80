"""
Authentication routes for registration, login and the current identity.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..limiter import limiter
from ..schemas.auth import UserCreate, UserLogin, AuthResponse
from ..auth import create_access_token, get_claims, load_current_user
from ..config import get_settings
from ..logging_config import auth_logger
from ..responses import unauthorized
from ..services.accounts import authenticate_user, register_user, user_summary
from ..tokens import Claims

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user, message: str) -> dict:
    return AuthResponse(
        token=create_access_token(user),
        expires_in=settings.access_token_expire_minutes * 60,
        user=user_summary(user),
        message=message,
    ).model_dump()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
@limiter.limit(settings.register_rate_limit)
def register(request: Request, user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user account and return a signed token."""
    user = register_user(db, user_data, allow_tier_selection=settings.allow_tier_selection)
    return _token_response(user, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with JSON body (email/password)."""
    user = authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        auth_logger.warning("Failed login", email_domain=credentials.email.split("@")[-1])
        unauthorized("Invalid email or password")

    auth_logger.info("User logged in", user_id=user.id)
    return _token_response(user, "Login successful")


@router.get("/me")
def get_me(claims: Claims = Depends(get_claims), db: Session = Depends(get_db)):
    """Get the verified claims and the current account."""
    user = load_current_user(db, claims)
    return {"claims": claims.to_dict(), "user": user_summary(user)}
