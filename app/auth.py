"""
Authentication utilities: password hashing, access tokens and the bearer guard.
"""
from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import get_settings
from .logging_config import auth_logger
from .models.enums import Role, Tier
from .models.user import User
from .responses import AuthenticationError
from .tokens import Claims, TokenError, get_signing_keys, issue_token, verify_token

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)
bearer_scheme = HTTPBearer(auto_error=False)

MISSING_HEADER = "Missing or malformed Authorization header"
INVALID_TOKEN = "Invalid or expired token"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def claims_for_user(user: User) -> Claims:
    return Claims(
        user_id=user.id,
        email=user.email,
        tier=Tier(user.tier),
        role=Role(user.role),
        username=user.username,
    )


def create_access_token(user: User) -> str:
    """Create a signed access token for a user with the deployment's fixed TTL."""
    keys = get_signing_keys()
    return issue_token(
        claims_for_user(user),
        keys.private_key,
        ttl=timedelta(minutes=settings.access_token_expire_minutes),
        key_id=keys.key_id,
    )


def authenticate(credentials: Optional[HTTPAuthorizationCredentials]) -> Claims:
    """Verify bearer credentials, raising 401 on any failure."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(MISSING_HEADER)

    try:
        return verify_token(credentials.credentials, get_signing_keys().public_key)
    except TokenError as e:
        auth_logger.warning("Token rejected", reason=e.reason, error_message=str(e))
        raise AuthenticationError(INVALID_TOKEN)


def get_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Claims:
    """Require a valid bearer token; the verified claims are handed to the route."""
    return authenticate(credentials)


def get_optional_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Claims]:
    """Claims if a valid bearer token was sent, None for anonymous callers."""
    if credentials is None:
        return None
    try:
        return authenticate(credentials)
    except AuthenticationError:
        return None


def load_current_user(db: Session, claims: Claims) -> User:
    """Fetch the user a token belongs to; a deleted account invalidates its tokens."""
    user = db.get(User, claims.user_id)
    if user is None:
        raise AuthenticationError(INVALID_TOKEN, details="Account no longer exists")
    return user
