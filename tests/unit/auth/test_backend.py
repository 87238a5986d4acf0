"""Unit tests for auth backend (JWT and password handling)."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from jose import jwt

from backoffice.config import settings
from backoffice.core.auth.backend import (
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    hash_password,
    verify_password,
)
from backoffice.core.auth.schemas import TokenType


pytestmark = pytest.mark.unit


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_returns_bcrypt_hash(self):
        hashed = hash_password("mysecretpassword")

        assert hashed != "mysecretpassword"
        assert hashed.startswith("$2b$")

    def test_hash_password_salts_each_hash(self):
        assert hash_password("mysecretpassword") != hash_password("mysecretpassword")

    def test_verify_password_correct(self):
        hashed = hash_password("mysecretpassword")

        assert verify_password("mysecretpassword", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("mysecretpassword")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_malformed_hash(self):
        """A corrupt stored hash fails verification instead of raising."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestJWTTokens:
    """Tests for JWT token functions."""

    def test_access_token_round_trip(self):
        user_id = uuid4()

        token, expire = create_access_token(user_id)
        data = decode_token(token)

        assert token.count(".") == 2
        assert data is not None
        assert data.user_id == user_id
        assert data.type == TokenType.ACCESS
        assert abs((data.exp - expire).total_seconds()) < 1

    def test_access_token_default_lifetime_is_24_hours(self):
        _, expire = create_access_token(uuid4())

        remaining = expire - datetime.now(UTC)
        assert timedelta(hours=23, minutes=59) < remaining <= timedelta(hours=24)

    def test_refresh_token_default_lifetime_is_7_days(self):
        token, expire = create_refresh_token(uuid4())

        remaining = expire - datetime.now(UTC)
        assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)
        assert decode_token(token).type == TokenType.REFRESH

    def test_claims_are_user_id_exp_and_type(self):
        token, _ = create_access_token(uuid4())

        claims = jwt.get_unverified_claims(token)

        assert set(claims) == {"user_id", "exp", "type"}

    def test_token_pair_expires_at_matches_access_token(self):
        user_id = uuid4()

        pair = create_token_pair(user_id)

        access = decode_token(pair.access_token)
        refresh = decode_token(pair.refresh_token)
        assert pair.token_type == "bearer"
        assert pair.expires_at == int(access.exp.timestamp())
        assert access.type == TokenType.ACCESS
        assert refresh.type == TokenType.REFRESH
        assert refresh.user_id == user_id

    def test_decode_expired_token(self):
        token, _ = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None

    def test_decode_token_signed_with_other_key(self):
        token = jwt.encode(
            {"user_id": str(uuid4()), "exp": datetime.now(UTC) + timedelta(hours=1)},
            "some-other-secret-key-that-is-long-enough",
            algorithm=settings.jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_decode_token_without_user_id(self):
        token = jwt.encode(
            {"exp": datetime.now(UTC) + timedelta(hours=1), "type": "access"},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_decode_token_with_bad_type(self):
        token = jwt.encode(
            {
                "user_id": str(uuid4()),
                "exp": datetime.now(UTC) + timedelta(hours=1),
                "type": "session",
            },
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_decode_garbage(self):
        assert decode_token("not.a.token") is None
