"""Pydantic schemas for role operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.core.constants import MAX_DESCRIPTION_LENGTH, MAX_ROLE_NAME_LENGTH
from backoffice.core.permissions.models import RoleType
from backoffice.modules.permissions.schemas import PermissionResponse


class RoleCreate(BaseModel):
    """Schema for creating a role.

    The permission list is always applied, so an omitted list creates a
    role with no permissions.
    """

    organization_id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=MAX_ROLE_NAME_LENGTH)
    display_name: str = Field(..., min_length=1, max_length=MAX_ROLE_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    type: RoleType = RoleType.CUSTOM
    level: int = Field(0, ge=0)
    is_default: bool = False
    permission_ids: list[UUID] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    """Schema for updating a role.

    Empty strings and zero leave a field unchanged. ``permission_ids``
    replaces the whole set when present, including an empty list.
    """

    name: str | None = Field(None, max_length=MAX_ROLE_NAME_LENGTH)
    display_name: str | None = Field(None, max_length=MAX_ROLE_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    level: int | None = Field(None, ge=0)
    is_default: bool | None = None
    permission_ids: list[UUID] | None = None


class RoleFilter(BaseModel):
    """Filters for listing roles."""

    organization_id: UUID | None = None
    name: str | None = None
    type: RoleType | None = None
    is_global: bool | None = None


class RoleResponse(BaseModel):
    """Schema for role response data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID | None
    name: str
    display_name: str
    description: str | None = None
    type: RoleType
    level: int
    is_default: bool
    created_at: datetime
    updated_at: datetime


class RoleDetailResponse(RoleResponse):
    """Role together with its current permission set."""

    permissions: list[PermissionResponse] = []
