"""
Unit tests for core.security module.
Tests password hashing and bearer token signing/verification.
"""
import datetime as dt

import jwt
import pytest

from microblog.core.security import TokenCodec, hash_password, verify_password


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_returns_different_hash_each_time(self):
        """Password hashing should produce different hashes (salt included)."""
        hash1 = hash_password("Secur3Pass!")
        hash2 = hash_password("Secur3Pass!")
        assert hash1 != hash2

    def test_hash_is_not_plain_text(self):
        hashed = hash_password("Secur3Pass!")
        assert isinstance(hashed, str)
        assert hashed != "Secur3Pass!"

    def test_verify_password_correct_password(self):
        hashed = hash_password("Secur3Pass!")
        assert verify_password("Secur3Pass!", hashed) is True

    def test_verify_password_incorrect_password(self):
        hashed = hash_password("Secur3Pass!")
        assert verify_password("Secur3Pass?", hashed) is False


class TestTokenCodec:
    """Tests for token creation and validation."""

    def test_token_carries_user_id(self):
        codec = TokenCodec("s3cret", expire_minutes=60)
        payload = codec.decode(codec.encode("user-123"))
        assert payload["sub"] == "user-123"

    def test_tokens_for_same_user_are_distinct(self):
        """Two sessions opened back to back must not share a token."""
        codec = TokenCodec("s3cret")
        assert codec.encode("user-1") != codec.encode("user-1")

    def test_token_has_expiration(self):
        codec = TokenCodec("s3cret", expire_minutes=30)
        payload = codec.decode(codec.encode("user-exp"))
        assert "iat" in payload
        diff_minutes = (payload["exp"] - payload["iat"]) / 60
        assert abs(diff_minutes - 30) < 1
        assert payload["exp"] > dt.datetime.now(dt.timezone.utc).timestamp()

    def test_zero_minutes_disables_expiry(self):
        codec = TokenCodec("s3cret", expire_minutes=0)
        payload = codec.decode(codec.encode("user-forever"))
        assert "exp" not in payload

    def test_expired_token_is_rejected(self):
        codec = TokenCodec("s3cret", expire_minutes=1)
        token = jwt.encode(
            {"sub": "user-old", "exp": dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=5)},
            "s3cret",
            algorithm="HS256",
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            codec.decode(token)

    def test_wrong_secret_is_rejected(self):
        token = TokenCodec("s3cret").encode("user-secret")
        with pytest.raises(jwt.InvalidSignatureError):
            TokenCodec("other-secret").decode(token)

    def test_garbage_is_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            TokenCodec("s3cret").decode("invalid.token.here")

    def test_is_valid(self):
        codec = TokenCodec("s3cret", expire_minutes=1)
        expired = jwt.encode(
            {"sub": "user-old", "exp": dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=5)},
            "s3cret",
            algorithm="HS256",
        )
        assert codec.is_valid(codec.encode("user-1"))
        assert not codec.is_valid(expired)
        assert not codec.is_valid(TokenCodec("other-secret").encode("user-1"))
        assert not codec.is_valid("invalid.token.here")
