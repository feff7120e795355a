"""Standardized API responses and error handling.

All endpoints answer with the same envelope:

- success: ``{"ok": true, "data": ...}``
- failure: ``{"ok": false, "error": str, "code": ErrorCode, "details"?: ...}``

Errors are classified by type, never by message text. Stack traces are never
sent; diagnostic detail is attached only outside production.
"""

from typing import Any

import httpx
import openai
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.config import get_settings
from backend.app.errors import HTTP_STATUS_BY_CODE, ApiError, ErrorCode, RateLimitedError
from backend.app.models.envelope import ApiErrorResponse, FieldError
from backend.app.utils.logging import api_logger
from backend.app.utils.metrics import access_metrics


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    """Create a standardized success response."""
    return JSONResponse(
        status_code=status_code,
        content={"ok": True, "data": jsonable_encoder(data)},
    )


def error_response(
    code: ErrorCode,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response; status is derived from ``code``."""
    body = ApiErrorResponse(error=message, code=code, details=details)
    access_metrics.inc_api_error(code.value)
    return JSONResponse(
        status_code=HTTP_STATUS_BY_CODE[code],
        content=jsonable_encoder(body, exclude_none=True),
        headers=headers,
    )


def validation_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Field-level details, without echoing the submitted values."""
    details = []
    for error in exc.errors():
        # First loc element is the request part (body/query/path)
        loc = [str(part) for part in error.get("loc", ())]
        path = loc[1:] if len(loc) > 1 else loc
        details.append(FieldError(path=path, message=error.get("msg", "Invalid value")).model_dump())
    return details


def _debug_details(exc: BaseException) -> dict[str, Any] | None:
    if get_settings().is_production:
        return None
    return {"type": type(exc).__name__, "message": str(exc)}


def handle_api_error(exc: BaseException) -> JSONResponse:
    """Convert any exception raised by a handler into an error envelope."""
    if isinstance(exc, ApiError):
        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        if exc.status_code >= 500:
            api_logger.error("api.error", {"code": exc.code.value, "message": exc.message})
        return error_response(exc.code, exc.message, exc.details, headers)

    if isinstance(exc, RequestValidationError):
        return error_response(
            ErrorCode.VALIDATION_ERROR,
            "Please check your input and try again.",
            validation_details(exc),
        )

    # Full detail stays server-side
    api_logger.error("api.unhandled_error", {"type": type(exc).__name__, "message": str(exc)})

    if isinstance(exc, openai.APITimeoutError):
        return error_response(ErrorCode.OPENAI_TIMEOUT, "Upstream timeout")

    if isinstance(exc, openai.APIError):
        details = None
        if not get_settings().is_production:
            details = {
                "message": exc.message,
                "code": exc.code,
                "status": getattr(exc, "status_code", None),
            }
        return error_response(ErrorCode.OPENAI_ERROR, "OpenAI API error", details)

    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return error_response(ErrorCode.TIMEOUT, "Upstream timeout")

    if isinstance(exc, httpx.HTTPError):
        return error_response(ErrorCode.UPSTREAM_ERROR, "An upstream service returned an error")

    return error_response(
        ErrorCode.UNKNOWN_ERROR,
        "An unexpected error occurred",
        _debug_details(exc),
    )


async def _exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return handle_api_error(exc)


def install_exception_handlers(app: FastAPI) -> None:
    """Route every error through the envelope."""
    app.add_exception_handler(ApiError, _exception_handler)
    app.add_exception_handler(RequestValidationError, _exception_handler)
    app.add_exception_handler(Exception, _exception_handler)
