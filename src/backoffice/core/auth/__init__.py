"""Authentication module for JWT and password handling."""

from backoffice.core.auth.backend import (
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    hash_password,
    verify_password,
)
from backoffice.core.auth.dependencies import CurrentIdentity, get_identity
from backoffice.core.auth.schemas import Identity, TokenData, TokenPair, TokenType


__all__ = [
    "CurrentIdentity",
    "Identity",
    "TokenData",
    "TokenPair",
    "TokenType",
    "create_access_token",
    "create_refresh_token",
    "create_token_pair",
    "decode_token",
    "get_identity",
    "hash_password",
    "verify_password",
]
