"""Pydantic schemas for units and unit members."""

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
from backoffice.modules.units.models import UnitMemberRole


# ============================================================
# Unit Schemas
# ============================================================


class UnitCreate(BaseModel):
    organization_id: UUID
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    code: str = Field(..., min_length=1, max_length=MAX_CODE_LENGTH)
    type: str | None = Field(None, max_length=MAX_TYPE_LENGTH)
    address: str | None = None
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    email: EmailStr | None = None
    logo: str | None = Field(None, max_length=MAX_URL_LENGTH)
    settings: dict[str, Any] | None = None


class UnitUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    code: str | None = Field(None, min_length=1, max_length=MAX_CODE_LENGTH)
    type: str | None = Field(None, max_length=MAX_TYPE_LENGTH)
    address: str | None = None
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    email: EmailStr | None = None
    logo: str | None = Field(None, max_length=MAX_URL_LENGTH)
    settings: dict[str, Any] | None = None
    is_active: bool | None = None


class UnitFilter(BaseModel):
    organization_id: UUID | None = None
    type: str | None = None
    is_active: bool | None = None


class UnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    name: str
    code: str
    type: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    logo: str | None = None
    settings: dict[str, Any] = {}
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UnitDetailResponse(UnitResponse):
    member_count: int = 0


# ============================================================
# Member Schemas
# ============================================================


class UnitMemberCreate(BaseModel):
    """Schema for adding a unit member. Role defaults to staff."""

    user_id: UUID
    role: UnitMemberRole = UnitMemberRole.STAFF


class UnitMemberUpdate(BaseModel):
    role: UnitMemberRole | None = None
    is_active: bool | None = None


class UnitMemberFilter(BaseModel):
    role: UnitMemberRole | None = None
    is_active: bool | None = None


class UnitMemberResponse(BaseModel):
    """Unit membership with user, unit and organization display fields joined in."""

    id: UUID
    user_id: UUID
    unit_id: UUID
    role: UnitMemberRole
    is_active: bool
    joined_at: datetime
    invited_by: UUID | None = None
    user_full_name: str
    user_email: str
    unit_name: str
    unit_code: str
    organization_id: UUID
    organization_name: str

    @classmethod
    def from_row(cls, row: Any) -> "UnitMemberResponse":
        member = row[0]
        return cls(
            id=member.id,
            user_id=member.user_id,
            unit_id=member.unit_id,
            role=member.role,
            is_active=member.is_active,
            joined_at=member.joined_at,
            invited_by=member.invited_by,
            user_full_name=row.user_full_name,
            user_email=row.user_email,
            unit_name=row.unit_name,
            unit_code=row.unit_code,
            organization_id=row.organization_id,
            organization_name=row.organization_name,
        )
