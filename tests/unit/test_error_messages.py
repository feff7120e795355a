"""Unit tests for user-facing error copy."""

import pytest

from backend.app.api.error_messages import (
    AI_TIMEOUT,
    FORBIDDEN,
    NO_BUSINESS,
    PREMIUM,
    RATE_LIMITED,
    SERVICE_UNAVAILABLE,
    SIGN_IN,
    format_user_error_message,
)
from backend.app.errors import ErrorCode


@pytest.mark.parametrize(
    "code,expected",
    [
        (ErrorCode.UNAUTHORIZED, SIGN_IN),
        (ErrorCode.PREMIUM_REQUIRED, PREMIUM),
        (ErrorCode.RATE_LIMITED, RATE_LIMITED),
        (ErrorCode.OPENAI_TIMEOUT, AI_TIMEOUT),
        (ErrorCode.FORBIDDEN, FORBIDDEN),
        (ErrorCode.DB_UNAVAILABLE, SERVICE_UNAVAILABLE),
    ],
)
def test_message_by_code(code: ErrorCode, expected: str) -> None:
    assert format_user_error_message(code, "server text") == expected


def test_code_may_be_a_plain_string() -> None:
    assert format_user_error_message("UNAUTHORIZED") == SIGN_IN


def test_server_text_is_not_inspected() -> None:
    """A message that mentions a timeout does not make it a timeout."""
    message = format_user_error_message(ErrorCode.FORBIDDEN, "upstream timeout while loading")

    assert message == FORBIDDEN


def test_no_membership_gets_invite_hint() -> None:
    message = format_user_error_message(ErrorCode.FORBIDDEN, details={"reason": "no_active_membership"})

    assert message == NO_BUSINESS


def test_validation_lists_fields() -> None:
    message = format_user_error_message(
        ErrorCode.VALIDATION_ERROR,
        "Please check your input and try again.",
        details=[{"path": ["businessId"], "message": "Field required"}],
    )

    assert message == "Please check your input:\nBusiness Id: Field required"


def test_validation_without_details_uses_error() -> None:
    assert format_user_error_message(ErrorCode.VALIDATION_ERROR, "Bad date") == "Bad date"


def test_unknown_code_falls_back_to_status() -> None:
    assert format_user_error_message("SOMETHING_NEW", status_code=429) == RATE_LIMITED


def test_unknown_code_prefers_server_text_over_status() -> None:
    assert format_user_error_message("SOMETHING_NEW", "Try later", status_code=503) == "Try later"


def test_nothing_known() -> None:
    assert format_user_error_message().startswith("Something went wrong")
