"""Role and permission models for RBAC.

Permissions are ``resource.action`` pairs. Roles group permissions through
the role_permissions join table. A role with no organization is global;
system roles are always global and can never be changed.
"""

from enum import StrEnum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.core.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_PERMISSION_ACTION_LENGTH,
    MAX_PERMISSION_NAME_LENGTH,
    MAX_PERMISSION_RESOURCE_LENGTH,
    MAX_ROLE_NAME_LENGTH,
)
from backoffice.core.database.base import Base, TimestampMixin, UUIDMixin


class RoleType(StrEnum):
    SYSTEM = "system"
    CUSTOM = "custom"


def permission_name(resource: str, action: str) -> str:
    """Build the canonical ``resource.action`` name."""
    return f"{resource}.{action}"


class Permission(Base, UUIDMixin, TimestampMixin):
    """A single capability, e.g. ``classes.read``."""

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permission_resource_action"),
    )

    name: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_NAME_LENGTH),
        nullable=False,
        unique=True,
    )
    resource: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_RESOURCE_LENGTH),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_ACTION_LENGTH),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Permission({self.name})>"


class Role(Base, UUIDMixin, TimestampMixin):
    """A named set of permissions.

    Attributes:
        organization_id: Owning organization, or None for a global role
        name: Role name, unique within its organization (or among globals)
        display_name: Human-readable label
        type: "system" (immutable) or "custom"
        level: Ordering hint for display and comparison
        is_default: Suggested role for new members
    """

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_role_org_name"),
        # NULLs never collide in a unique constraint, so global names need their own index
        Index(
            "uq_role_global_name",
            "name",
            unique=True,
            sqlite_where=text("organization_id IS NULL"),
            postgresql_where=text("organization_id IS NULL"),
        ),
    )

    organization_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(
        String(20),
        default=RoleType.CUSTOM.value,
        nullable=False,
    )
    level: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    @property
    def is_system(self) -> bool:
        return self.type == RoleType.SYSTEM

    @property
    def is_global(self) -> bool:
        return self.organization_id is None

    def __repr__(self) -> str:
        return f"<Role(name={self.name}, type={self.type}, organization_id={self.organization_id})>"


class RolePermission(Base, TimestampMixin):
    """Association between a role and a permission."""

    __tablename__ = "role_permissions"

    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission_id: Mapped[UUID] = mapped_column(
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
