"""Request ID propagation and structured access logs."""

from backoffice.core.logging.middleware import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
)
from backoffice.core.logging.setup import configure_logging


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "configure_logging",
]
