"""User database models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from backoffice.core.database.base import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin


def normalise_email(email: str) -> str:
    """Emails are stored and compared trimmed and lowercased."""
    return email.strip().lower()


class User(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """An account that can authenticate and hold memberships.

    Attributes:
        email: Unique email address
        password_hash: Bcrypt-hashed password
        full_name: User's full name
        is_active: Whether the user can log in
        is_super_admin: Whether every permission check passes for this user
        last_login_at: Time of the most recent successful login
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    is_super_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
