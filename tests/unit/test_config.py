"""Tests for settings loading."""

import pytest

from backend.app.config import Settings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("ENVIRONMENT", "DATABASE_URL", "REDIS_URL", "DEMO_BUSINESS_ID"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.redis_url is None
    assert settings.rate_limit_window_seconds == 900
    assert settings.rate_limit_max_requests == 20
    assert settings.handoff_default_ttl_ms == 600_000
    assert settings.handoff_max_payload_bytes == 150 * 1024
    assert settings.is_production is False


def test_environment_variables_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DEMO_BUSINESS_ID", "biz-demo")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "5")

    settings = get_settings()

    assert settings.is_production is True
    assert settings.demo_business_id == "biz-demo"
    assert settings.rate_limit_max_requests == 5


def test_settings_are_cached() -> None:
    assert get_settings() is get_settings()
