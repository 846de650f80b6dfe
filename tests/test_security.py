"""
Unit tests for security utilities.
"""
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from kasir.core.security import (
    blacklist_token,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    hash_token,
    is_token_blacklisted,
    verify_password,
)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password(self):
        """Hashing never returns the plain password."""
        hashed = hash_password("mysecretpassword")

        assert hashed != "mysecretpassword"
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        """Test that hashing same password produces different hashes."""
        assert hash_password("mysecretpassword") != hash_password("mysecretpassword")

    def test_verify_password(self):
        hashed = hash_password("mysecretpassword")

        assert verify_password("mysecretpassword", hashed) is True
        assert verify_password("wrongpassword", hashed) is False


class TestJWTTokens:
    """Tests for JWT token functions."""

    def test_decode_access_token(self):
        token = create_access_token(subject=42)

        payload = decode_token(token)

        assert payload is not None
        assert payload["sub"] == "42"
        assert payload["type"] == "access"

    def test_decode_refresh_token(self):
        payload = decode_token(create_refresh_token(subject=7))

        assert payload["sub"] == "7"
        assert payload["type"] == "refresh"

    def test_tokens_issued_together_differ(self):
        """Two tokens for the same subject in the same second are distinct."""
        assert create_access_token(subject=1) != create_access_token(subject=1)
        assert create_refresh_token(subject=1) != create_refresh_token(subject=1)

    def test_decode_invalid_token(self):
        assert decode_token("invalid.token.here") is None

    def test_expired_token_is_rejected(self):
        token = create_access_token(subject=1, expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None


class TestTokenBlacklist:
    """Tests for token revocation."""

    def test_hash_token_is_sha256_hex(self):
        digest = hash_token("abc")

        assert len(digest) == 64
        assert digest == hash_token("abc")

    def test_blacklist_token(self, db: Session):
        token = create_refresh_token(subject=1)
        expires_at = datetime.now(timezone.utc) + timedelta(days=1)

        assert is_token_blacklisted(token, db) is False
        blacklist_token(token, expires_at, db)
        assert is_token_blacklisted(token, db) is True

    def test_blacklist_token_twice_is_noop(self, db: Session):
        token = create_refresh_token(subject=1)
        expires_at = datetime.now(timezone.utc) + timedelta(days=1)

        blacklist_token(token, expires_at, db)
        blacklist_token(token, expires_at, db)

        assert is_token_blacklisted(token, db) is True
