"""
Tier and role policy.

Tiers are ordered (free < premium < enterprise); roles are matched exactly.
The two axes are independent: an admin on the free tier cannot share, and an
enterprise user is not an admin.
"""
from typing import Optional

from .models.enums import Role, Tier
from .responses import AuthorizationError
from .tokens import Claims

TIER_LEVELS = {
    Tier.FREE: 1,
    Tier.PREMIUM: 2,
    Tier.ENTERPRISE: 3,
}


def _ensure_claims(claims: Optional[Claims]) -> Claims:
    if claims is None:
        raise RuntimeError("Policy evaluated without authenticated claims")
    return claims


def has_tier(claims: Claims, min_tier: Tier) -> bool:
    return TIER_LEVELS[_ensure_claims(claims).tier] >= TIER_LEVELS[min_tier]


def has_role(claims: Claims, role: Role) -> bool:
    return _ensure_claims(claims).role == role


def require_tier(claims: Claims, min_tier: Tier) -> None:
    """Raise 403 unless the caller's tier is at least min_tier."""
    if not has_tier(claims, min_tier):
        raise AuthorizationError(
            "Insufficient tier",
            extra={"required": min_tier.value, "current": claims.tier.value},
        )


def require_role(claims: Claims, role: Role) -> None:
    """Raise 403 unless the caller holds exactly this role."""
    if not has_role(claims, role):
        raise AuthorizationError(
            "Insufficient role",
            extra={"required": role.value, "current": claims.role.value},
        )
