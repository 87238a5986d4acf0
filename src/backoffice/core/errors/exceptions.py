"""Error taxonomy of the back-office core.

Services raise these; the handlers in ``handlers.py`` turn them into
Problem Details responses. Nothing below the service layer returns an
HTTP status directly.

    ValidationError / BadRequestError   400  malformed or inconsistent input
    UnauthorizedError                   401  bad credentials, bad or expired token
    ForbiddenError                      403  system role mutation, inactive account,
                                             pending/rejected approval, missing permission
    NotFoundError                       404  missing (or soft-deleted) record
    ConflictError                       409  duplicate email, code, role name, membership
    InternalError                       500  unexpected store failure
"""

from typing import Any, ClassVar


class AppException(Exception):
    """Base class for every error that maps to an HTTP response.

    Attributes:
        message: Human-readable text, sent as the problem ``detail``
        error_code: Stable snake_case code clients can branch on
        details: Extra members merged into the problem body
    """

    status_code: ClassVar[int] = 500
    title: ClassVar[str] = "Internal Server Error"
    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or type(self).message
        self.error_code = error_code or type(self).error_code
        self.details = dict(details or {})
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code!r}, {self.message!r})"


class InternalError(AppException):
    """Raised when the store or another dependency fails unexpectedly."""


class NotFoundError(AppException):
    """Raised when a record does not exist or has been soft-deleted.

    The message defaults to "<Resource> not found":

        raise NotFoundError(resource="unit_member", resource_id=str(member_id))
    """

    status_code = 404
    title = "Not Found"
    message = "Resource not found"
    error_code = "not_found"

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = dict(kwargs.pop("details", None) or {})
        if resource:
            details["resource"] = resource
            message = message or f"{resource.replace('_', ' ').capitalize()} not found"
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when a write collides with a unique key or an existing membership."""

    status_code = 409
    title = "Conflict"
    message = "Resource conflict"
    error_code = "conflict"


class ValidationError(AppException):
    """Raised when input is well-formed but refers to something invalid.

    ``errors`` uses the same ``{field, message}`` shape as request
    validation failures, so clients render both the same way.
    """

    status_code = 400
    title = "Validation Error"
    message = "Validation error"
    error_code = "validation_error"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = dict(kwargs.pop("details", None) or {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)

    @property
    def field_errors(self) -> list[dict[str, Any]]:
        return list(self.details.get("errors", []))


class BadRequestError(AppException):
    status_code = 400
    title = "Bad Request"
    message = "Bad request"
    error_code = "bad_request"


class UnauthorizedError(AppException):
    """Raised for failed authentication.

    Login failures must use one message whether or not the email exists.
    """

    status_code = 401
    title = "Unauthorized"
    message = "Authentication required"
    error_code = "unauthorized"


class ForbiddenError(AppException):
    """Raised when an authenticated caller may not perform the action."""

    status_code = 403
    title = "Forbidden"
    message = "Access forbidden"
    error_code = "forbidden"
