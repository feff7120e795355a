"""Session storage abstraction backing the handoff store.

Models one browser tab's session storage: string keys, string values,
single consumer, no cross-tab coordination.
"""

from typing import Protocol


class StorageUnavailableError(Exception):
    """Storage cannot be used (server render, private mode, disabled)."""


class StorageQuotaExceededError(StorageUnavailableError):
    """A write would exceed the storage quota."""


class SessionStorage(Protocol):
    """Key/value storage interface."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any existing one."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete a key; absent keys are ignored."""
        ...


class InMemorySessionStorage:
    """In-memory implementation of SessionStorage with an optional byte quota."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._max_bytes = max_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._max_bytes is not None:
            used = sum(
                len(k.encode("utf-8")) + len(v.encode("utf-8"))
                for k, v in self._items.items()
                if k != key
            )
            if used + len(key.encode("utf-8")) + len(value.encode("utf-8")) > self._max_bytes:
                raise StorageQuotaExceededError(f"Quota of {self._max_bytes} bytes exceeded")

        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items


class UnavailableSessionStorage:
    """Storage that refuses every operation, e.g. during server rendering."""

    def get_item(self, key: str) -> str | None:
        raise StorageUnavailableError("Session storage is not available")

    def set_item(self, key: str, value: str) -> None:
        raise StorageUnavailableError("Session storage is not available")

    def remove_item(self, key: str) -> None:
        raise StorageUnavailableError("Session storage is not available")
