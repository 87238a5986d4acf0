"""Database layer - session management, base models, and mixins."""

from backoffice.core.database.base import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin
from backoffice.core.database.integrity import conflict_on_integrity_error
from backoffice.core.database.session import (
    async_engine,
    async_session_factory,
    build_engine,
    configure_sqlite,
    get_db,
    init_db,
)


__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "build_engine",
    "configure_sqlite",
    "conflict_on_integrity_error",
    "get_db",
    "init_db",
]
