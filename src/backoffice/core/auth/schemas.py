"""Authentication schemas for token handling and request identity."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel


class TokenType(StrEnum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenData(BaseModel):
    """Data extracted from a verified JWT.

    Attributes:
        user_id: The user's UUID
        exp: Token expiration time
        type: Token class (access or refresh)
    """

    user_id: UUID
    exp: datetime
    type: TokenType = TokenType.ACCESS


class TokenPair(BaseModel):
    """A pair of access and refresh tokens.

    Attributes:
        access_token: JWT for API access
        refresh_token: JWT for getting a new pair
        token_type: Always "bearer"
        expires_at: Access token expiry as unix seconds
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: int


class Identity(BaseModel):
    """The authenticated caller, resolved once per request.

    Passed explicitly to guards and services rather than looked up from
    ambient request state.
    """

    user_id: UUID
    email: str
    full_name: str
    is_super_admin: bool = False

    @property
    def role_label(self) -> str:
        """Coarse role label used by role-level checks."""
        return "super_admin" if self.is_super_admin else "user"
