"""Request ID and access logging.

``RequestIdMiddleware`` must wrap ``RequestLoggingMiddleware`` so the ID is
already bound when ``request_started`` is emitted.
"""

import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

# Probes and API docs are polled constantly and carry no user action.
QUIET_PATH_PREFIXES = ("/health/", "/docs", "/redoc", "/openapi.json")

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _request_id_from(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    if _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return uuid.uuid4().hex


def get_client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if real_ip := request.headers.get("X-Real-IP"):
        return real_ip
    return request.client.host if request.client else None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID for logs, error bodies and the response.

    A well-formed incoming ``X-Request-ID`` is reused so IDs survive a
    proxy hop; anything else is replaced with a fresh one.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = _request_id_from(request)
        request.state.request_id = request_id
        # Problem Details bodies expose it as trace_id
        request.state.trace_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "user_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line when a request starts and one when it ends.

    Bodies are never logged: login, register and refresh carry passwords
    and tokens.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if path.startswith(QUIET_PATH_PREFIXES):
            return await call_next(request)

        started = time.perf_counter()
        request_fields: dict[str, Any] = {"method": request.method, "path": path}
        logger.info(
            "request_started",
            client_ip=get_client_ip(request),
            query=request.url.query or None,
            **request_fields,
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", duration_ms=_elapsed_ms(started), **request_fields)
            raise

        user_id = getattr(request.state, "user_id", None)
        if user_id:
            request_fields["user_id"] = str(user_id)

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_completed",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
            **request_fields,
        )
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
