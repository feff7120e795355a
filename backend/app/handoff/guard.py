"""Double-apply protection for handoffs.

Two markers live in the same session storage as the handoffs themselves:

- per consuming app, the hashes of payloads already imported (most recent 25);
- per handoff id, a "consumed" flag so a refresh cannot re-read it.

Storage failures degrade to "not imported / not consumed".
"""

import json
import logging
from typing import Any

from backend.app.handoff.storage import SessionStorage, StorageUnavailableError

logger = logging.getLogger(__name__)

MAX_IMPORTED_HASHES = 25

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _imported_key(app_key: str) -> str:
    return f"obd_handoff_imported:{app_key}"


def _consumed_key(handoff_id: str) -> str:
    return f"obd_handoff_consumed:{handoff_id}"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def _djb2(text: str) -> int:
    # 32-bit signed DJB2 over UTF-16 code units
    data = text.encode("utf-16-le")
    h = 5381
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) + h + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def get_handoff_hash(payload: Any) -> str:
    """Short, deterministic base36 hash identifying a payload."""
    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return _to_base36(abs(_djb2(text)))


def _load_hashes(storage: SessionStorage, app_key: str) -> list[str]:
    raw = storage.get_item(_imported_key(app_key))
    if not raw:
        return []
    try:
        hashes = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(hashes, list):
        return []
    return [h for h in hashes if isinstance(h, str)]


def was_handoff_already_imported(storage: SessionStorage | None, app_key: str, digest: str) -> bool:
    """Whether ``digest`` was already imported into ``app_key`` this session."""
    if storage is None:
        return False
    try:
        return digest in _load_hashes(storage, app_key)
    except StorageUnavailableError as e:
        logger.warning("Failed to check handoff import status: %s", e)
        return False


def mark_handoff_imported(storage: SessionStorage | None, app_key: str, digest: str) -> None:
    """Record ``digest`` as imported, keeping the newest 25 entries."""
    if storage is None:
        return
    try:
        hashes = [h for h in _load_hashes(storage, app_key) if h != digest]
        hashes.append(digest)
        storage.set_item(_imported_key(app_key), json.dumps(hashes[-MAX_IMPORTED_HASHES:]))
    except StorageUnavailableError as e:
        logger.warning("Failed to mark handoff as imported: %s", e)


def was_handoff_consumed(storage: SessionStorage | None, handoff_id: str) -> bool:
    """Whether the handoff reference was already consumed in this tab."""
    if storage is None:
        return False
    try:
        return storage.get_item(_consumed_key(handoff_id)) == "true"
    except StorageUnavailableError as e:
        logger.warning("Failed to check handoff consumption status: %s", e)
        return False


def mark_handoff_consumed(storage: SessionStorage | None, handoff_id: str) -> None:
    """Flag a handoff reference as consumed."""
    if storage is None:
        return
    try:
        storage.set_item(_consumed_key(handoff_id), "true")
    except StorageUnavailableError as e:
        logger.warning("Failed to mark handoff as consumed: %s", e)
