"""Translation of storage-level constraint violations into domain errors."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.errors import ConflictError


logger = structlog.get_logger()


@asynccontextmanager
async def conflict_on_integrity_error(
    session: AsyncSession,
    message: str,
    error_code: str = "conflict",
    details: dict[str, Any] | None = None,
) -> AsyncIterator[None]:
    """Run a write inside a SAVEPOINT and map unique violations to ConflictError.

    The unique constraint is the authoritative duplicate check; any
    pre-check done by a service only saves a round trip. Rolling back to
    the savepoint keeps the surrounding request transaction usable.

    Usage:
        async with conflict_on_integrity_error(session, "Role already exists"):
            session.add(role)
            await session.flush()
    """
    try:
        async with session.begin_nested():
            yield
    except IntegrityError as exc:
        logger.info("integrity_conflict", error_code=error_code, error=str(exc.orig))
        raise ConflictError(message, error_code=error_code, details=details) from exc
