"""Pydantic schemas for organizations and organization members."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from backoffice.core.constants import (
    MAX_CODE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_TYPE_LENGTH,
    MAX_URL_LENGTH,
)


# ============================================================
# Organization Schemas
# ============================================================


class OrganizationCreate(BaseModel):
    """Schema for creating an organization. The caller becomes its owner."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    code: str = Field(..., min_length=1, max_length=MAX_CODE_LENGTH)
    type: str | None = Field(None, max_length=MAX_TYPE_LENGTH)
    description: str | None = None
    address: str | None = None
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    email: EmailStr | None = None
    logo: str | None = Field(None, max_length=MAX_URL_LENGTH)
    settings: dict[str, Any] | None = None


class OrganizationUpdate(BaseModel):
    """Schema for a partial organization update."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    code: str | None = Field(None, min_length=1, max_length=MAX_CODE_LENGTH)
    type: str | None = Field(None, max_length=MAX_TYPE_LENGTH)
    description: str | None = None
    address: str | None = None
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    email: EmailStr | None = None
    logo: str | None = Field(None, max_length=MAX_URL_LENGTH)
    settings: dict[str, Any] | None = None
    is_active: bool | None = None


class OrganizationFilter(BaseModel):
    owner_id: UUID | None = None
    type: str | None = None
    is_active: bool | None = None


class OrganizationResponse(BaseModel):
    """Schema for organization response data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    code: str
    type: str
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    logo: str | None = None
    settings: dict[str, Any] = {}
    owner_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


class OrganizationDetailResponse(OrganizationResponse):
    member_count: int = 0


# ============================================================
# Member Schemas
# ============================================================


class OrganizationMemberCreate(BaseModel):
    user_id: UUID
    role_id: UUID


class OrganizationMemberUpdate(BaseModel):
    role_id: UUID | None = None
    is_active: bool | None = None


class OrganizationMemberFilter(BaseModel):
    role_id: UUID | None = None
    is_active: bool | None = None


class OrganizationMemberResponse(BaseModel):
    """Membership row with user, role and organization display fields joined in."""

    id: UUID
    user_id: UUID
    organization_id: UUID
    role_id: UUID
    is_active: bool
    joined_at: datetime
    invited_by: UUID | None = None
    user_full_name: str
    user_email: str
    role_name: str
    role_display_name: str
    organization_name: str
    organization_code: str

    @classmethod
    def from_row(cls, row: Any) -> "OrganizationMemberResponse":
        """Build from a membership row joined with its display fields."""
        member = row[0]
        return cls(
            id=member.id,
            user_id=member.user_id,
            organization_id=member.organization_id,
            role_id=member.role_id,
            is_active=member.is_active,
            joined_at=member.joined_at,
            invited_by=member.invited_by,
            user_full_name=row.user_full_name,
            user_email=row.user_email,
            role_name=row.role_name,
            role_display_name=row.role_display_name,
            organization_name=row.organization_name,
            organization_code=row.organization_code,
        )
