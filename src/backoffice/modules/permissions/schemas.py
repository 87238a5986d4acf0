"""Pydantic schemas for the permission catalog."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backoffice.core.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_PERMISSION_ACTION_LENGTH,
    MAX_PERMISSION_RESOURCE_LENGTH,
)


_NAME_PART_PATTERN = r"^[A-Za-z0-9_\-*]+$"


class PermissionCreate(BaseModel):
    """Schema for creating a permission."""

    resource: str = Field(
        ...,
        min_length=1,
        max_length=MAX_PERMISSION_RESOURCE_LENGTH,
        pattern=_NAME_PART_PATTERN,
    )
    action: str = Field(
        ...,
        min_length=1,
        max_length=MAX_PERMISSION_ACTION_LENGTH,
        pattern=_NAME_PART_PATTERN,
    )
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @field_validator("resource", "action")
    @classmethod
    def normalise(cls, v: str) -> str:
        return v.strip().lower()


class PermissionResponse(BaseModel):
    """Schema for permission response data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    resource: str
    action: str
    description: str | None = None
    created_at: datetime
