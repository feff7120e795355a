"""Session-scoped, TTL-guarded handoff store.

Lets one tool suggest pre-filled input for another without a server round
trip. Every entry carries ``createdAt``/``expiresAt``; expiry is enforced on
each read and expired entries are removed silently.

No method here raises on storage failure: an unavailable store behaves like an
empty one.
"""

import json
import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from backend.app.handoff.storage import SessionStorage, StorageUnavailableError
from backend.app.models.handoff import (
    HandoffDraft,
    HandoffValidationReason,
    HandoffValidationResult,
)
from backend.app.utils.metrics import access_metrics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_MAX_PAYLOAD_BYTES = 150 * 1024


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return as_utc(parsed)


def _serialized_size(payload: Any) -> int | None:
    try:
        return len(json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))
    except (TypeError, ValueError):
        return None


def validate_handoff(
    payload: Any,
    *,
    business_id: str | None,
    now: datetime,
    expected_source_app: str | None = None,
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
) -> HandoffValidationResult:
    """Decide whether a stored handoff may be offered to the user.

    Checks run in a fixed order and the first failure wins: invalid_payload,
    expired, missing_business_context, tenant_mismatch, invalid_source. An
    expired payload for another business therefore reports ``expired``.
    """
    if not isinstance(payload, dict):
        return HandoffValidationResult.failure(HandoffValidationReason.invalid_payload)

    size = _serialized_size(payload)
    if size is None or size > max_payload_bytes:
        return HandoffValidationResult.failure(HandoffValidationReason.invalid_payload)

    expires_raw = payload.get("expiresAt")
    if not isinstance(expires_raw, str) or not expires_raw:
        return HandoffValidationResult.failure(HandoffValidationReason.invalid_payload)

    # An expiry that cannot be read can never be shown to be in the future
    expires_at = parse_timestamp(expires_raw)
    if expires_at is None or expires_at <= as_utc(now):
        return HandoffValidationResult.failure(HandoffValidationReason.expired)

    current_business = (business_id or "").strip()
    if not current_business:
        return HandoffValidationResult.failure(HandoffValidationReason.missing_business_context)

    payload_business = payload.get("businessId")
    payload_business = payload_business.strip() if isinstance(payload_business, str) else ""
    if not payload_business or payload_business != current_business:
        return HandoffValidationResult.failure(HandoffValidationReason.tenant_mismatch)

    if expected_source_app:
        source_app = payload.get("sourceApp")
        if not isinstance(source_app, str) or source_app != expected_source_app:
            return HandoffValidationResult.failure(HandoffValidationReason.invalid_source)

    return HandoffValidationResult.success()


class HandoffStore:
    """TTL-guarded key/value store over one tab's session storage."""

    def __init__(
        self,
        storage: SessionStorage | None,
        *,
        clock: Clock = utc_now,
        default_ttl_ms: int = 10 * 60 * 1000,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ) -> None:
        """Initialize handoff store.

        Args:
            storage: Session storage, or None where none exists (server render)
            clock: Source of the current time
            default_ttl_ms: TTL used by ``send`` when none is given
            max_payload_bytes: Serialized size limit enforced by ``validate``
        """
        self._storage = storage
        self._clock = clock
        self._default_ttl_ms = default_ttl_ms
        self._max_payload_bytes = max_payload_bytes

    @property
    def storage(self) -> SessionStorage | None:
        return self._storage

    def now(self) -> datetime:
        return self._clock()

    def create(self, key: str, payload: Any, ttl_ms: float) -> dict[str, Any] | None:
        """Stamp and persist a payload.

        Object payloads get ``createdAt``/``expiresAt`` merged in and the
        stamped object is returned. Other values are stored wrapped as
        ``{"payload", "createdAt", "expiresAt"}`` and None is returned.

        Returns None without writing if ``ttl_ms`` is not a positive finite
        number or storage is unavailable.
        """
        if self._storage is None:
            return None
        if isinstance(ttl_ms, bool) or not isinstance(ttl_ms, (int, float)):
            return None
        if not math.isfinite(ttl_ms) or ttl_ms <= 0:
            return None

        now = as_utc(self._clock())
        # Stored timestamps carry milliseconds; expiry is computed from the stored value
        created = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        created_at = format_timestamp(created)
        try:
            expires_at = format_timestamp(created + timedelta(milliseconds=ttl_ms))
        except OverflowError:
            logger.warning("Handoff TTL out of range", extra={"structured": {"key": key, "ttl_ms": ttl_ms}})
            return None

        if isinstance(payload, dict):
            record: dict[str, Any] = {**payload, "createdAt": created_at, "expiresAt": expires_at}
            result: dict[str, Any] | None = record
        else:
            record = {"payload": payload, "createdAt": created_at, "expiresAt": expires_at}
            result = None

        try:
            self._storage.set_item(key, json.dumps(record))
        except StorageUnavailableError as e:
            logger.warning("Handoff write skipped: %s", e, extra={"structured": {"key": key}})
            return None
        except (TypeError, ValueError):
            logger.warning("Handoff payload is not JSON serializable", extra={"structured": {"key": key}})
            return None

        access_metrics.inc_handoff_event("created")
        return result

    def send(self, key: str, draft: HandoffDraft, ttl_ms: float | None = None) -> dict[str, Any] | None:
        """Create a handoff from a typed producer draft."""
        return self.create(key, draft.to_wire(), self._default_ttl_ms if ttl_ms is None else ttl_ms)

    def read(self, key: str) -> Any | None:
        """Return the stored payload if present and unexpired.

        Expired or unparsable entries are deleted and read as None.
        """
        if self._storage is None:
            return None

        try:
            raw = self._storage.get_item(key)
        except StorageUnavailableError:
            return None

        if not raw:
            return None

        try:
            parsed = json.loads(raw)
        except ValueError:
            self.clear(key)
            return None

        expires_raw = parsed.get("expiresAt") if isinstance(parsed, dict) else None
        if isinstance(expires_raw, str) and expires_raw:
            expires_at = parse_timestamp(expires_raw)
            if expires_at is None or expires_at <= as_utc(self._clock()):
                self.clear(key)
                access_metrics.inc_handoff_event("expired")
                return None

        return parsed

    def validate(
        self,
        payload: Any,
        *,
        business_id: str | None,
        now: datetime | None = None,
        expected_source_app: str | None = None,
    ) -> HandoffValidationResult:
        """Validate against the current tenant; see ``validate_handoff``."""
        return validate_handoff(
            payload,
            business_id=business_id,
            now=now if now is not None else self._clock(),
            expected_source_app=expected_source_app,
            max_payload_bytes=self._max_payload_bytes,
        )

    def clear(self, key: str) -> None:
        """Delete a key. Idempotent."""
        if self._storage is None:
            return
        try:
            self._storage.remove_item(key)
        except StorageUnavailableError as e:
            logger.debug("Handoff clear skipped: %s", e)
