"""Pydantic schemas for user and session operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from backoffice.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from backoffice.modules.users.models import normalise_email


# ============================================================
# User Schemas
# ============================================================


class UserResponse(BaseModel):
    """Public profile of a user. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    is_super_admin: bool
    is_active: bool
    last_login_at: datetime | None = None


class UserCreate(BaseModel):
    """Schema for an account created from the users directory."""

    email: EmailStr = Field(..., max_length=MAX_EMAIL_LENGTH)
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )
    full_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def normalise(cls, v: object) -> object:
        return normalise_email(v) if isinstance(v, str) else v


class UserUpdate(BaseModel):
    """Schema for a partial user update. Omitted fields are left unchanged."""

    email: EmailStr | None = Field(None, max_length=MAX_EMAIL_LENGTH)
    full_name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    is_active: bool | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalise(cls, v: object) -> object:
        return normalise_email(v) if isinstance(v, str) else v


class UserFilter(BaseModel):
    """Directory filters.

    Attributes:
        search: Case-insensitive match on email or full name
        platform_only: Only super admins and users without a live
            organization membership
    """

    search: str | None = None
    is_active: bool | None = None
    is_super_admin: bool | None = None
    platform_only: bool = False


# ============================================================
# Auth Schemas
# ============================================================


class RegisterRequest(BaseModel):
    """Schema for user registration."""

    email: EmailStr = Field(..., max_length=MAX_EMAIL_LENGTH)
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )
    full_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def normalise(cls, v: object) -> object:
        return normalise_email(v) if isinstance(v, str) else v


class LoginRequest(BaseModel):
    """Schema for login request.

    Email is not format-checked here so that a malformed address fails
    the same way as an unknown one.
    """

    email: str = Field(..., min_length=1, max_length=MAX_EMAIL_LENGTH)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalise(cls, v: str) -> str:
        return normalise_email(v)


class RefreshTokenRequest(BaseModel):
    """Schema for token refresh request."""

    refresh_token: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Token pair plus the signed-in user."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: int
    user: UserResponse


class RegisterResponse(BaseModel):
    """Schema for registration response."""

    user: UserResponse
