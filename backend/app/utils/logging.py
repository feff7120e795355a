"""Structured, redacting logger for API routes.

Secrets, tokens and large free text (prompts, AI output) never reach the log
sink: matching keys are replaced with ``[REDACTED]`` and long strings are
truncated before the record is emitted.
"""

import logging
import re
from typing import Any

from backend.app.config import Settings

REDACTED = "[REDACTED]"
MAX_STRING_LENGTH = 1000

SENSITIVE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"password",
        r"secret",
        r"token",
        r"api[_-]?key",
        r"bearer",
        r"authorization",
        r"session[_-]?id",
    )
]

# Large free-text fields that may carry PII
SENSITIVE_KEYS = frozenset({"prompt", "content"})


def _is_sensitive(key: str) -> bool:
    return key in SENSITIVE_KEYS or any(p.search(key) for p in SENSITIVE_PATTERNS)


def sanitize_metadata(metadata: dict[str, Any] | None) -> dict[str, Any] | None:
    """Return a copy of ``metadata`` safe to log.

    Nested dicts are sanitized recursively; lists are passed through as-is.
    """
    if metadata is None:
        return None

    sanitized: dict[str, Any] = {}
    for key, value in metadata.items():
        if _is_sensitive(key):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_metadata(value)
        elif isinstance(value, str) and len(value) > MAX_STRING_LENGTH:
            sanitized[key] = value[:MAX_STRING_LENGTH] + "... [TRUNCATED]"
        else:
            sanitized[key] = value

    return sanitized


class ApiLogger:
    """Event-oriented logger: ``[API:<event>]`` plus sanitized metadata."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("backend.app.api")

    def _log(self, level: int, event: str, metadata: dict[str, Any] | None) -> None:
        sanitized = sanitize_metadata(metadata)
        self._logger.log(
            level,
            f"[API:{event}]",
            extra={"structured": {"event": event, **(sanitized or {})}},
        )

    def debug(self, event: str, metadata: dict[str, Any] | None = None) -> None:
        self._log(logging.DEBUG, event, metadata)

    def info(self, event: str, metadata: dict[str, Any] | None = None) -> None:
        self._log(logging.INFO, event, metadata)

    def warning(self, event: str, metadata: dict[str, Any] | None = None) -> None:
        self._log(logging.WARNING, event, metadata)

    def error(self, event: str, metadata: dict[str, Any] | None = None) -> None:
        self._log(logging.ERROR, event, metadata)


api_logger = ApiLogger()


def configure_logging(settings: Settings) -> None:
    """Apply the configured level to the application loggers."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("backend.app").setLevel(settings.log_level.upper())
