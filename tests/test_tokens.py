"""
Tests for the token codec and signing keys.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.models.enums import Role, Tier
from app.tokens import (
    Claims,
    ExpiredTokenError,
    MalformedTokenError,
    TokenSignatureError,
    generate_rsa_key_pair,
    get_signing_keys,
    issue_token,
    jwks_document,
    key_id_for,
    verify_token,
)

ISSUED = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="module")
def key_pair():
    return generate_rsa_key_pair()


@pytest.fixture(scope="module")
def other_key_pair():
    return generate_rsa_key_pair()


@pytest.fixture
def claims():
    return Claims(user_id=42, email="alice@example.com", tier=Tier.PREMIUM, role=Role.USER, username="alice")


class TestTokenCodec:
    """Issue and verify tokens."""

    def test_roundtrip_preserves_claims(self, key_pair, claims):
        private_key, public_key = key_pair
        token = issue_token(claims, private_key, timedelta(hours=1), now=ISSUED)

        verified = verify_token(token, public_key, now=ISSUED + timedelta(minutes=1))
        assert verified.user_id == 42
        assert verified.email == "alice@example.com"
        assert verified.tier == Tier.PREMIUM
        assert verified.role == Role.USER
        assert verified.username == "alice"
        assert verified.issued_at == ISSUED
        assert verified.expires_at == ISSUED + timedelta(hours=1)

    def test_valid_just_before_expiry(self, key_pair, claims):
        private_key, public_key = key_pair
        token = issue_token(claims, private_key, timedelta(hours=1), now=ISSUED)

        assert verify_token(token, public_key, now=ISSUED + timedelta(minutes=59)).user_id == 42

    def test_expired_after_ttl(self, key_pair, claims):
        private_key, public_key = key_pair
        token = issue_token(claims, private_key, timedelta(hours=1), now=ISSUED)

        with pytest.raises(ExpiredTokenError):
            verify_token(token, public_key, now=ISSUED + timedelta(minutes=61))

    def test_expired_exactly_at_expiry(self, key_pair, claims):
        private_key, public_key = key_pair
        token = issue_token(claims, private_key, timedelta(hours=1), now=ISSUED)

        with pytest.raises(ExpiredTokenError):
            verify_token(token, public_key, now=ISSUED + timedelta(hours=1))

    def test_other_key_fails_signature(self, key_pair, other_key_pair, claims):
        _, public_key = key_pair
        other_private, _ = other_key_pair
        token = issue_token(claims, other_private, timedelta(hours=1), now=ISSUED)

        with pytest.raises(TokenSignatureError):
            verify_token(token, public_key, now=ISSUED)

    def test_tampered_payload_fails_signature(self, key_pair, claims):
        private_key, public_key = key_pair
        token = issue_token(claims, private_key, timedelta(hours=1), now=ISSUED)
        forged = issue_token(
            Claims(user_id=42, email="alice@example.com", tier=Tier.ENTERPRISE, role=Role.ADMIN),
            private_key, timedelta(hours=1), now=ISSUED,
        )
        header, _, signature = token.split(".")
        _, forged_payload, _ = forged.split(".")

        with pytest.raises(TokenSignatureError):
            verify_token(f"{header}.{forged_payload}.{signature}", public_key, now=ISSUED)

    def test_symmetric_algorithm_rejected(self, key_pair):
        _, public_key = key_pair
        token = jwt.encode(
            {"sub": "1", "email": "a@b.c", "tier": "free", "role": "user", "iat": ISSUED, "exp": ISSUED + timedelta(hours=1)},
            "shared-secret",
            algorithm="HS256",
        )

        with pytest.raises(TokenSignatureError):
            verify_token(token, public_key, now=ISSUED)

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "Zm9v.YmFy"])
    def test_garbage_is_malformed(self, key_pair, token):
        _, public_key = key_pair
        with pytest.raises(MalformedTokenError):
            verify_token(token, public_key, now=ISSUED)

    def test_missing_claims_is_malformed(self, key_pair):
        private_key, public_key = key_pair
        token = jwt.encode(
            {"sub": "1", "email": "a@b.c", "iat": ISSUED, "exp": ISSUED + timedelta(hours=1)},
            private_key,
            algorithm="RS256",
        )

        with pytest.raises(MalformedTokenError):
            verify_token(token, public_key, now=ISSUED)

    def test_unknown_tier_is_malformed(self, key_pair):
        private_key, public_key = key_pair
        token = jwt.encode(
            {"sub": "1", "email": "a@b.c", "tier": "platinum", "role": "user",
             "iat": ISSUED, "exp": ISSUED + timedelta(hours=1)},
            private_key,
            algorithm="RS256",
        )

        with pytest.raises(MalformedTokenError):
            verify_token(token, public_key, now=ISSUED)

    def test_key_id_in_header(self, key_pair, claims):
        private_key, public_key = key_pair
        token = issue_token(claims, private_key, timedelta(hours=1), key_id=key_id_for(public_key))
        assert jwt.get_unverified_header(token)["kid"] == key_id_for(public_key)


class TestSigningKeys:
    """Key loading and the discovery document."""

    def test_ephemeral_keys_are_cached(self):
        assert get_signing_keys() is get_signing_keys()

    def test_jwks_document_describes_public_key(self):
        keys = get_signing_keys()
        document = jwks_document(keys)

        assert len(document["keys"]) == 1
        key = document["keys"][0]
        assert key["kty"] == "RSA"
        assert key["alg"] == "RS256"
        assert key["use"] == "sig"
        assert key["kid"] == keys.key_id
        assert key["n"] and key["e"]
        assert "d" not in key

    def test_key_id_is_stable(self, key_pair):
        _, public_key = key_pair
        assert key_id_for(public_key) == key_id_for(public_key + "\n")
