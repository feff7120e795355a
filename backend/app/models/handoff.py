"""Handoff wire models (camelCase on the wire)."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HandoffDraft(BaseModel):
    """Producer-side handoff before the store stamps timestamps.

    Extra keys are the tool-specific block and pass through untouched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    source_app: str = Field(..., min_length=1)
    business_id: str = Field(..., min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire aliases."""
        return self.model_dump(by_alias=True, mode="json")


class HandoffPayload(HandoffDraft):
    """Handoff as stored in session storage."""

    created_at: datetime
    expires_at: datetime


class HandoffValidationReason(str, Enum):
    """Why a handoff may not be applied."""

    missing_business_context = "missing_business_context"
    tenant_mismatch = "tenant_mismatch"
    expired = "expired"
    invalid_source = "invalid_source"
    invalid_payload = "invalid_payload"


class HandoffValidationResult(BaseModel):
    """Structured validation outcome; ``reason`` is set only when not ok."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: HandoffValidationReason | None = None

    @classmethod
    def success(cls) -> "HandoffValidationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: HandoffValidationReason) -> "HandoffValidationResult":
        return cls(ok=False, reason=reason)
