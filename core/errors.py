"""
core/errors.py -- Typed error taxonomy shared by every layer.

Services raise AppError subclasses; api/main.py registers one exception
handler that switches on ErrorKind to pick the HTTP status and envelope.
Nothing in the call chain inspects error message strings.

Layer rule: core/ is the kernel. No imports from api/, auth/, store/, or tasks/.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    validation_error = "validation_error"
    unauthenticated = "unauthenticated"
    invalid_token = "invalid_token"
    forbidden = "forbidden"
    not_found = "not_found"
    conflict = "conflict"
    rate_limited = "rate_limited"
    store_failure = "store_failure"
    credential_failure = "credential_failure"


# Kind -> HTTP status. The boundary translator is the only consumer.
HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.validation_error: 400,
    ErrorKind.unauthenticated: 401,
    ErrorKind.invalid_token: 401,
    ErrorKind.forbidden: 403,
    ErrorKind.not_found: 404,
    ErrorKind.conflict: 409,
    ErrorKind.rate_limited: 429,
    ErrorKind.store_failure: 500,
    ErrorKind.credential_failure: 500,
}


class AppError(Exception):
    """Base class for every classified failure.

    `message` is safe to show to a client for 4xx kinds. For 5xx kinds the
    boundary replaces it with a generic message and only logs the original.
    """

    kind: ErrorKind = ErrorKind.validation_error
    default_message: str = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def headers(self) -> dict[str, str]:
        """Extra response headers the boundary should send with this error."""
        return {}


class ValidationError(AppError):
    """Malformed request input.

    `field_errors` holds one {"field", "message"} dict per offending field.
    """

    kind = ErrorKind.validation_error
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, field_errors: list[dict[str, str]] | None = None) -> None:
        super().__init__(message)
        self.field_errors = field_errors or []


class UnauthenticatedError(AppError):
    kind = ErrorKind.unauthenticated
    default_message = "Not authorized, no token provided"


class InvalidTokenError(UnauthenticatedError):
    """Signature mismatch, malformed token, expiry, or missing claims."""

    kind = ErrorKind.invalid_token
    default_message = "Not authorized, invalid or expired token"


class ForbiddenError(AppError):
    kind = ErrorKind.forbidden
    default_message = "Forbidden"


class NotFoundError(AppError):
    kind = ErrorKind.not_found
    default_message = "Not found"


class ConflictError(AppError):
    kind = ErrorKind.conflict
    default_message = "Resource already exists"


class RateLimitedError(AppError):
    kind = ErrorKind.rate_limited
    default_message = "Too many requests from this IP, please try again later."

    def __init__(self, message: str | None = None, retry_after: int = 60) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class CredentialError(AppError):
    """The password hashing primitive itself failed (e.g. corrupt stored hash)."""

    kind = ErrorKind.credential_failure
    default_message = "Credential verification failed"


class StoreFailureError(AppError):
    """Record store transport or server failure.

    Carries the resource and operation so logs identify the failing call.
    The cause is chained with `raise ... from` and kept on `.cause`.
    """

    kind = ErrorKind.store_failure

    def __init__(self, resource: str, operation: str, cause: Exception | str) -> None:
        self.resource = resource
        self.operation = operation
        self.cause = cause
        super().__init__(f"Record store {operation} on '{resource}' failed: {cause}")
