"""Consumer side of a handoff: load, then apply or dismiss on user action."""

from dataclasses import dataclass
from typing import Any

from backend.app.handoff.guard import (
    get_handoff_hash,
    mark_handoff_consumed,
    mark_handoff_imported,
    was_handoff_already_imported,
    was_handoff_consumed,
)
from backend.app.handoff.store import HandoffStore
from backend.app.models.handoff import HandoffValidationReason, HandoffValidationResult
from backend.app.utils.metrics import access_metrics

# Notice shown for a rejected handoff; None means discard without telling the user
HANDOFF_NOTICES: dict[HandoffValidationReason, str | None] = {
    HandoffValidationReason.tenant_mismatch: (
        "This suggestion was created for a different business, so nothing was filled in."
    ),
    HandoffValidationReason.missing_business_context: (
        "Select a business before applying suggestions from another tool."
    ),
    HandoffValidationReason.invalid_source: None,
    HandoffValidationReason.invalid_payload: None,
    HandoffValidationReason.expired: None,
}


@dataclass(frozen=True)
class PendingHandoff:
    """A handoff awaiting an explicit user decision.

    ``payload`` is None when validation failed; nothing may be pre-filled then.
    """

    result: HandoffValidationResult
    payload: dict[str, Any] | None = None
    notice: str | None = None

    @property
    def ok(self) -> bool:
        return self.result.ok


class HandoffReceiver:
    """Reads one handoff key on behalf of a consuming tool."""

    def __init__(
        self,
        store: HandoffStore,
        key: str,
        consumer_app: str,
        expected_source_app: str | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._consumer_app = consumer_app
        self._expected_source_app = expected_source_app

    def _already_used(self, digest: str) -> bool:
        storage = self._store.storage
        return was_handoff_consumed(storage, digest) or was_handoff_already_imported(
            storage, self._consumer_app, digest
        )

    def _check(self, business_id: str | None) -> PendingHandoff | None:
        payload = self._store.read(self._key)
        if payload is None:
            return None

        result = self._store.validate(
            payload,
            business_id=business_id,
            expected_source_app=self._expected_source_app,
        )
        if not result.ok:
            self._store.clear(self._key)
            reason = result.reason or HandoffValidationReason.invalid_payload
            access_metrics.inc_handoff_event(f"rejected_{reason.value}")
            return PendingHandoff(result=result, notice=HANDOFF_NOTICES[reason])

        if self._already_used(get_handoff_hash(payload)):
            self._store.clear(self._key)
            return None

        return PendingHandoff(result=result, payload=payload)

    def load(self, business_id: str | None) -> PendingHandoff | None:
        """Offer the stored handoff, if any, for confirmation.

        Never applies anything. Rejected payloads are cleared; payloads
        already applied or dismissed in this tab are cleared and ignored.
        """
        return self._check(business_id)

    def apply(self, business_id: str | None) -> dict[str, Any] | None:
        """Apply on explicit user action; returns the payload to pre-fill.

        The payload is re-validated, then removed and recorded so a refresh
        cannot apply it again.
        """
        pending = self._check(business_id)
        if pending is None or pending.payload is None:
            return None

        digest = get_handoff_hash(pending.payload)
        mark_handoff_imported(self._store.storage, self._consumer_app, digest)
        mark_handoff_consumed(self._store.storage, digest)
        self._store.clear(self._key)
        access_metrics.inc_handoff_event("applied")
        return pending.payload

    def dismiss(self) -> None:
        """Discard on explicit user action."""
        payload = self._store.read(self._key)
        if payload is not None:
            mark_handoff_consumed(self._store.storage, get_handoff_hash(payload))
        self._store.clear(self._key)
        access_metrics.inc_handoff_event("dismissed")
