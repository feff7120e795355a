"""Models package - re-exports for convenience."""

from backend.app.models.access import (
    AccessCheckRequest,
    AccessCheckResponse,
    AccessContextResponse,
    MembershipSummary,
)
from backend.app.models.envelope import ApiErrorResponse, ApiSuccessResponse, FieldError
from backend.app.models.handoff import (
    HandoffDraft,
    HandoffPayload,
    HandoffValidationReason,
    HandoffValidationResult,
)

__all__ = [
    "AccessCheckRequest",
    "AccessCheckResponse",
    "AccessContextResponse",
    "ApiErrorResponse",
    "ApiSuccessResponse",
    "FieldError",
    "HandoffDraft",
    "HandoffPayload",
    "HandoffValidationReason",
    "HandoffValidationResult",
    "MembershipSummary",
]
