"""
Signed access tokens.

Tokens are RS256 JWTs: the private key signs, the public key (published as a
JWKS document) verifies. Verification failures are classified so callers can
log why a token was refused, while clients only ever see one 401 message.
"""
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt
from jose.exceptions import JWTClaimsError, JWTError

from .config import get_settings
from .logging_config import auth_logger
from .models.enums import Role, Tier

ALGORITHM = "RS256"
REQUIRED_CLAIMS = ("sub", "email", "tier", "role", "iat", "exp")


# ============================================================
# ERRORS
# ============================================================

class TokenError(Exception):
    """Base class for token verification failures."""
    reason = "invalid"


class ExpiredTokenError(TokenError):
    reason = "expired"


class MalformedTokenError(TokenError):
    reason = "malformed"


class TokenSignatureError(TokenError):
    reason = "signature"


# ============================================================
# CLAIMS
# ============================================================

@dataclass(frozen=True)
class Claims:
    """Identity asserted by a token. Lives for one request only."""
    user_id: int
    email: str
    tier: Tier
    role: Role
    username: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "tier": self.tier.value,
            "role": self.role.value,
            "username": self.username,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _claims_from_payload(payload: dict) -> Claims:
    missing = [name for name in REQUIRED_CLAIMS if payload.get(name) is None]
    if missing:
        raise MalformedTokenError(f"missing claims: {', '.join(missing)}")
    try:
        return Claims(
            user_id=int(payload["sub"]),
            email=str(payload["email"]),
            tier=Tier(payload["tier"]),
            role=Role(payload["role"]),
            username=payload.get("username"),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedTokenError(f"invalid claim value: {exc}") from exc


# ============================================================
# CODEC
# ============================================================

def issue_token(
    claims: Claims,
    private_key: str,
    ttl: timedelta,
    now: Optional[datetime] = None,
    key_id: Optional[str] = None,
) -> str:
    """Sign claims; the token expires ttl after now."""
    issued_at = (now or _utcnow()).replace(microsecond=0)
    payload = {
        "sub": str(claims.user_id),
        "email": claims.email,
        "tier": claims.tier.value,
        "role": claims.role.value,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    if claims.username:
        payload["username"] = claims.username

    headers = {"kid": key_id} if key_id else None
    return jwt.encode(payload, private_key, algorithm=ALGORITHM, headers=headers)


def verify_token(token: str, public_key: str, now: Optional[datetime] = None) -> Claims:
    """
    Verify a token and return its claims.

    Raises MalformedTokenError when the token cannot be parsed or lacks
    required claims, TokenSignatureError when the signature does not match
    public_key, and ExpiredTokenError once now >= exp.
    """
    try:
        header = jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedTokenError(str(exc)) from exc

    if header.get("alg") != ALGORITHM:
        raise TokenSignatureError(f"unexpected algorithm {header.get('alg')!r}")

    try:
        payload = jwt.decode(token, public_key, algorithms=[ALGORITHM], options={"verify_exp": False})
    except JWTClaimsError as exc:
        raise MalformedTokenError(str(exc)) from exc
    except JWTError as exc:
        raise TokenSignatureError(str(exc)) from exc

    claims = _claims_from_payload(payload)
    current = now or _utcnow()
    if current.timestamp() >= claims.expires_at.timestamp():
        raise ExpiredTokenError("token has expired")
    return claims


# ============================================================
# KEYS
# ============================================================

@dataclass(frozen=True)
class KeyPair:
    private_key: str
    public_key: str
    key_id: str


def generate_rsa_key_pair(bits: int = 2048) -> Tuple[str, str]:
    """Return (private_pem, public_pem) for a fresh RSA key."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return private_pem, public_pem_from_private(private_pem)


def public_pem_from_private(private_pem: str) -> str:
    key = serialization.load_pem_private_key(private_pem.encode(), password=None)
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def key_id_for(public_pem: str) -> str:
    return hashlib.sha256(public_pem.strip().encode()).hexdigest()[:16]


def _load_pem(value: Optional[str], path: Optional[str]) -> Optional[str]:
    if value:
        # env files often carry PEMs on one line with escaped newlines
        return value.replace("\\n", "\n")
    if path:
        return Path(path).read_text()
    return None


@lru_cache()
def get_signing_keys() -> KeyPair:
    """Load the configured key pair, or generate an ephemeral one outside production."""
    settings = get_settings()
    private_pem = _load_pem(settings.jwt_private_key, settings.jwt_private_key_file)
    public_pem = _load_pem(settings.jwt_public_key, settings.jwt_public_key_file)

    if not private_pem:
        if settings.is_production:
            raise RuntimeError(
                "JWT_PRIVATE_KEY (or JWT_PRIVATE_KEY_FILE) must be set in production! "
                "Generate a key pair with: python scripts/generate_keys.py --out-dir ./keys"
            )
        auth_logger.warning("No signing key configured, using an ephemeral RSA key pair")
        private_pem, public_pem = generate_rsa_key_pair()
    elif not public_pem:
        public_pem = public_pem_from_private(private_pem)

    return KeyPair(
        private_key=private_pem,
        public_key=public_pem,
        key_id=settings.jwt_key_id or key_id_for(public_pem),
    )


def jwks_document(keys: KeyPair) -> dict:
    """Public key discovery document (RFC 7517 key set)."""
    public_jwk = jwk.construct(keys.public_key, ALGORITHM).to_dict()
    public_jwk.update({"kid": keys.key_id, "use": "sig", "alg": ALGORITHM})
    return {"keys": [public_jwk]}
