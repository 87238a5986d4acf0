"""Problem Details (RFC 7807) responses for every error the API returns.

Each response carries ``type`` (a URI ending in the error code), ``title``,
``status``, ``detail``, ``instance`` and the request's ``trace_id``.
Exception ``details`` are merged in as extension members.
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from backoffice.config import settings
from backoffice.core.errors.exceptions import AppException, ValidationError


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

PROBLEM_MEDIA_TYPE = "application/problem+json"


class FieldError(BaseModel):
    """One invalid input field."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """Problem Details body. Unknown keys are allowed as extension members."""

    model_config = ConfigDict(extra="allow")

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None


def _problem(
    request: Request,
    *,
    status_code: int,
    title: str,
    error_code: str,
    detail: str,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=title,
        status=status_code,
        detail=detail,
        instance=request.url.path,
        trace_id=getattr(request.state, "trace_id", None),
    ).model_dump(exclude_none=True)
    for key, value in (extra or {}).items():
        body.setdefault(key, value)
    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_MEDIA_TYPE)


def _field_path(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "unknown"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render a domain error raised by a service, repository or guard."""
    log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.info
    log(
        "request_rejected",
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return _problem(
        request,
        status_code=exc.status_code,
        title=exc.title,
        error_code=exc.error_code,
        detail=exc.message,
        extra=exc.details,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or missing request input is a 400 with one entry per field."""
    errors = [
        FieldError(
            field=_field_path(tuple(error.get("loc", ()))),
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        ).model_dump(exclude_none=True)
        for error in exc.errors()
    ]
    logger.info("request_invalid", path=request.url.path, fields=[e["field"] for e in errors])
    return _problem(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        title=ValidationError.title,
        error_code=ValidationError.error_code,
        detail="Request validation failed",
        extra={"errors": errors},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback; the client only learns that something failed."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return _problem(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title=AppException.title,
        error_code=AppException.error_code,
        detail=AppException.message,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, cast("ExceptionHandler", app_exception_handler))
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
