"""Pagination parameters and response envelopes."""

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel

from backoffice.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE


T = TypeVar("T")


def _coerce_positive(raw: str | None, default: int) -> int:
    """Parse a positive integer, falling back to the default on bad input."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Pagination:
    """Validated page/limit pair."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total_data: int) -> "PaginateMeta":
        """Build the paginate block for a result set of total_data rows."""
        return PaginateMeta(
            page=self.page,
            limit=self.limit,
            total_data=total_data,
            total_pages=math.ceil(total_data / self.limit) if total_data else 0,
        )


def get_pagination(
    page: str | None = Query(None, description="Page number, 1-based"),
    limit: str | None = Query(None, description="Items per page"),
) -> Pagination:
    """Read page/limit from the query string.

    Values that are not positive integers fall back to the defaults
    instead of failing the request.
    """
    return Pagination(
        page=_coerce_positive(page, DEFAULT_PAGE),
        limit=_coerce_positive(limit, DEFAULT_PAGE_SIZE),
    )


# ============================================================
# Response Envelopes
# ============================================================


class PaginateMeta(BaseModel):
    """Paging information attached to list responses."""

    page: int
    limit: int
    total_data: int
    total_pages: int


class MessageResponse(BaseModel):
    """Response carrying only a message."""

    message: str


class DataResponse(BaseModel, Generic[T]):
    """Single-object response envelope."""

    message: str
    data: T


class PaginatedResponse(BaseModel, Generic[T]):
    """List response envelope."""

    message: str
    data: list[T]
    paginate: PaginateMeta
