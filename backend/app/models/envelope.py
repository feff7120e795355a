"""Uniform response envelope models."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

from backend.app.errors import ErrorCode

T = TypeVar("T")


class ApiSuccessResponse(BaseModel, Generic[T]):
    """Success envelope: ``{"ok": true, "data": ...}``."""

    ok: Literal[True] = True
    data: T


class FieldError(BaseModel):
    """One invalid input field."""

    path: list[str]
    message: str


class ApiErrorResponse(BaseModel):
    """Failure envelope: ``{"ok": false, "error", "code", "details"?}``."""

    ok: Literal[False] = False
    error: str
    code: ErrorCode
    details: Any | None = None
