"""Typed error hierarchy shared by the access layer and route handlers.

Every error carries a stable ``ErrorCode``; the HTTP status is derived from
the code, never from the message text.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Closed set of envelope error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PREMIUM_REQUIRED = "PREMIUM_REQUIRED"
    FORBIDDEN = "FORBIDDEN"
    TENANT_SAFETY_BLOCKED = "TENANT_SAFETY_BLOCKED"
    UPSTREAM_NOT_FOUND = "UPSTREAM_NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    OPENAI_ERROR = "OPENAI_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    DB_UNAVAILABLE = "DB_UNAVAILABLE"
    OPENAI_TIMEOUT = "OPENAI_TIMEOUT"
    TIMEOUT = "TIMEOUT"


HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.PREMIUM_REQUIRED: 403,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.TENANT_SAFETY_BLOCKED: 403,
    ErrorCode.UPSTREAM_NOT_FOUND: 404,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.UNKNOWN_ERROR: 500,
    ErrorCode.OPENAI_ERROR: 502,
    ErrorCode.UPSTREAM_ERROR: 502,
    ErrorCode.DB_UNAVAILABLE: 503,
    ErrorCode.OPENAI_TIMEOUT: 504,
    ErrorCode.TIMEOUT: 504,
}


class ForbiddenReason(str, Enum):
    """Why an authenticated caller was refused."""

    no_active_membership = "no_active_membership"
    business_access_denied = "business_access_denied"
    role_not_permitted = "role_not_permitted"


class ApiError(Exception):
    """Base class for errors that map directly onto the response envelope."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]


class ValidationFailedError(ApiError):
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Please check your input and try again."


class UnauthorizedError(ApiError):
    code = ErrorCode.UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    """Authenticated, but not allowed for this business, role or action."""

    code = ErrorCode.FORBIDDEN
    default_message = "You do not have permission to perform this action."

    def __init__(self, reason: ForbiddenReason, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message, details={"reason": reason.value})


class PremiumRequiredError(ApiError):
    code = ErrorCode.PREMIUM_REQUIRED
    default_message = "Premium access required"


class TenantSafetyError(ApiError):
    code = ErrorCode.TENANT_SAFETY_BLOCKED
    default_message = "This request was blocked to protect business data."


class UpstreamNotFoundError(ApiError):
    code = ErrorCode.UPSTREAM_NOT_FOUND
    default_message = "The requested resource was not found"


class RateLimitedError(ApiError):
    code = ErrorCode.RATE_LIMITED
    default_message = "Rate limit exceeded"

    def __init__(self, retry_after_seconds: int, message: str | None = None) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message)


class DatastoreUnavailableError(ApiError):
    """The datastore could not be reached; distinct from any access denial."""

    code = ErrorCode.DB_UNAVAILABLE
    default_message = "The service is temporarily unavailable. Please try again."


class UpstreamError(ApiError):
    code = ErrorCode.UPSTREAM_ERROR
    default_message = "An upstream service returned an error"


class UpstreamTimeoutError(ApiError):
    code = ErrorCode.TIMEOUT
    default_message = "Upstream timeout"
