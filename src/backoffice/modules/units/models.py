"""Unit, unit membership and membership approval models."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.core.constants import (
    MAX_CODE_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_TYPE_LENGTH,
    MAX_URL_LENGTH,
)
from backoffice.core.database.base import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin


class UnitMemberRole(StrEnum):
    """Closed set of roles a unit member can hold."""

    OWNER = "owner"
    ADMIN = "admin"
    PENGURUS = "pengurus"
    STAFF = "staff"
    PARENT = "parent"
    ANGGOTA = "anggota"


class ApprovalStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Unit(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A school or other sub-tenant belonging to one organization."""

    __tablename__ = "units"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), nullable=False)
    code: Mapped[str] = mapped_column(
        String(MAX_CODE_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(MAX_TYPE_LENGTH), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(MAX_PHONE_LENGTH), nullable=True)
    email: Mapped[str | None] = mapped_column(String(MAX_EMAIL_LENGTH), nullable=True)
    logo: Mapped[str | None] = mapped_column(String(MAX_URL_LENGTH), nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Unit(code={self.code}, organization_id={self.organization_id})>"


class UnitMember(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A user's membership in a unit, carrying a UnitMemberRole."""

    __tablename__ = "unit_members"
    __table_args__ = (
        Index(
            "uq_unit_member_live",
            "user_id",
            "unit_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    unit_id: Mapped[UUID] = mapped_column(
        ForeignKey("units.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=UnitMemberRole.STAFF.value,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    invited_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )


class MemberApproval(Base, UUIDMixin, TimestampMixin):
    """Review outcome of a guardian/parent registration for a unit membership.

    Rows are written by the registration workflow; login only reads them.
    """

    __tablename__ = "member_approvals"

    unit_member_id: Mapped[UUID] = mapped_column(
        ForeignKey("unit_members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=ApprovalStatus.PENDING.value,
        nullable=False,
    )
    reviewed_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
