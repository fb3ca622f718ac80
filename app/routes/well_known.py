"""
Public key discovery.
"""
from fastapi import APIRouter

from ..tokens import get_signing_keys, jwks_document

router = APIRouter(prefix="/.well-known", tags=["auth"])


@router.get("/jwks.json")
def jwks():
    """Public signing keys, so other services can verify tokens without a secret."""
    return jwks_document(get_signing_keys())
