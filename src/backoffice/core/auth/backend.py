"""Authentication backend for JWT and password handling.

This module provides core authentication utilities including:
- Password hashing with bcrypt
- JWT access and refresh token creation and verification

Tokens are stateless: validity is signature plus expiry, and nothing is
stored server-side.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from backoffice.config import settings
from backoffice.core.auth.schemas import TokenData, TokenPair, TokenType
from backoffice.core.constants import BCRYPT_ROUNDS


# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


# ============================================================
# Password Utilities
# ============================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash in constant time.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Bcrypt hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed or unknown hash format
        return False


# ============================================================
# JWT Token Utilities
# ============================================================


def _encode(user_id: UUID, token_type: TokenType, expire: datetime) -> str:
    to_encode: dict[str, Any] = {
        "user_id": str(user_id),
        "exp": expire,
        "type": token_type.value,
    }
    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(
    user_id: UUID,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """Create a JWT access token.

    Args:
        user_id: The user's UUID
        expires_delta: Optional custom lifetime (default from settings, 24h)

    Returns:
        Tuple of (encoded token, expiry time)
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(hours=settings.access_token_expire_hours)
    )
    return _encode(user_id, TokenType.ACCESS, expire), expire


def create_refresh_token(
    user_id: UUID,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """Create a JWT refresh token.

    Args:
        user_id: The user's UUID
        expires_delta: Optional custom lifetime (default from settings, 7d)

    Returns:
        Tuple of (encoded token, expiry time)
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(days=settings.refresh_token_expire_days)
    )
    return _encode(user_id, TokenType.REFRESH, expire), expire


def create_token_pair(user_id: UUID) -> TokenPair:
    """Issue a fresh access and refresh token for a user."""
    access_token, access_expires = create_access_token(user_id)
    refresh_token, _ = create_refresh_token(user_id)
    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=int(access_expires.timestamp()),
    )


def decode_token(token: str) -> TokenData | None:
    """Decode and validate a JWT token.

    Args:
        token: The JWT token to decode

    Returns:
        TokenData if valid, None if the signature is bad, the token has
        expired, or required claims are missing
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )

        user_id = payload.get("user_id")
        exp = payload.get("exp")
        token_type = payload.get("type", TokenType.ACCESS.value)

        if not user_id or exp is None:
            return None

        return TokenData(
            user_id=UUID(user_id),
            exp=datetime.fromtimestamp(exp, tz=UTC),
            type=TokenType(token_type),
        )

    except (JWTError, ValueError):
        return None
