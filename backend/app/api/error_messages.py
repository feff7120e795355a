"""User-facing copy for error envelopes.

Selection is by error code, falling back to HTTP status. Message text from
the server is only shown when neither identifies a known case.
"""

import re
from typing import Any

from backend.app.errors import ErrorCode

SIGN_IN = "Please sign in to use this feature. Click the login button to get started."
PREMIUM = "This feature requires a Premium subscription. Upgrade your account to access all AI tools."
RATE_LIMITED = "You've made too many requests. Please wait a minute and try again."
AI_TIMEOUT = "The AI took too long to respond. Please try again. This usually works on the second attempt."
AI_UNAVAILABLE = "The AI service is temporarily unavailable. Please try again in a moment."
FORBIDDEN = "Your role in this business doesn't allow this action. Ask an owner or admin for access."
NO_BUSINESS = "We couldn't find a business for your account. Ask an owner to invite you."
TENANT_SAFETY = "This action was blocked to keep business data separate."
SERVICE_UNAVAILABLE = "We're having trouble reaching our servers. Please try again in a moment."
CHECK_INPUT = "Please check your input and try again."
UNEXPECTED = "Something unexpected happened. Please try again, and if the problem persists, contact support."

_BY_CODE: dict[ErrorCode, str] = {
    ErrorCode.UNAUTHORIZED: SIGN_IN,
    ErrorCode.PREMIUM_REQUIRED: PREMIUM,
    ErrorCode.RATE_LIMITED: RATE_LIMITED,
    ErrorCode.OPENAI_TIMEOUT: AI_TIMEOUT,
    ErrorCode.TIMEOUT: AI_TIMEOUT,
    ErrorCode.OPENAI_ERROR: AI_UNAVAILABLE,
    ErrorCode.UPSTREAM_ERROR: AI_UNAVAILABLE,
    ErrorCode.FORBIDDEN: FORBIDDEN,
    ErrorCode.TENANT_SAFETY_BLOCKED: TENANT_SAFETY,
    ErrorCode.DB_UNAVAILABLE: SERVICE_UNAVAILABLE,
    ErrorCode.UNKNOWN_ERROR: UNEXPECTED,
}

_BY_STATUS: dict[int, str] = {
    401: SIGN_IN,
    403: FORBIDDEN,
    429: RATE_LIMITED,
    500: "Something went wrong on our end. Please try again in a moment.",
    502: AI_UNAVAILABLE,
    503: SERVICE_UNAVAILABLE,
    504: AI_TIMEOUT,
}


def _humanize(path: list[Any]) -> str:
    # businessId -> Business Id
    words = re.sub(r"([A-Z])", r" \1", " ".join(str(p) for p in path)).replace("_", " ").strip()
    return words[:1].upper() + words[1:]


def _field_errors(details: Any) -> list[str]:
    if not isinstance(details, list):
        return []
    lines = []
    for item in details:
        if not isinstance(item, dict):
            continue
        path, message = item.get("path"), item.get("message")
        if path and message:
            lines.append(f"{_humanize(path)}: {message}")
    return lines


def format_user_error_message(
    code: ErrorCode | str | None = None,
    error: str | None = None,
    details: Any = None,
    status_code: int | None = None,
) -> str:
    """Turn an error envelope into a friendly message with a next step.

    Args:
        code: Envelope ``code``
        error: Envelope ``error`` message
        details: Envelope ``details``
        status_code: HTTP status, used when the code is unknown

    Returns:
        Message suitable for display
    """
    known_code: ErrorCode | None = None
    if code is not None:
        try:
            known_code = ErrorCode(code)
        except ValueError:
            known_code = None

    if known_code is ErrorCode.VALIDATION_ERROR or (known_code is None and status_code == 400):
        lines = _field_errors(details)
        if lines:
            return "Please check your input:\n" + "\n".join(lines)
        return error or CHECK_INPUT

    if known_code is ErrorCode.FORBIDDEN and isinstance(details, dict):
        if details.get("reason") == "no_active_membership":
            return NO_BUSINESS

    if known_code is not None and known_code in _BY_CODE:
        return _BY_CODE[known_code]

    if error:
        return error

    if status_code in _BY_STATUS:
        return _BY_STATUS[status_code]

    return "Something went wrong. Please try again, and if the problem persists, contact support."
