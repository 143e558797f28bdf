"""Tests for infrastructure settings."""

from unittest.mock import MagicMock

import pytest

from src.infrastructure import settings as settings_module
from src.infrastructure.settings import LedgerSettings

ENV_NAMES = (
    "LEDGER_STORE_BACKEND",
    "RATE_FEED_URL",
    "RATE_FEED_TIMEOUT",
    "RATE_REFRESH_INTERVAL_HOURS",
)


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setattr(settings_module.dotenv, "load_dotenv", lambda: None)
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    logger = MagicMock()
    monkeypatch.setattr(settings_module, "get_app_logger", lambda: logger)
    return logger


def test_from_env_uses_defaults(clean_env) -> None:
    """Unset variables fall back to the defaults."""
    settings = LedgerSettings.from_env()

    assert settings.backend == "sqlalchemy"
    assert settings.feed_url == "https://api.frankfurter.dev/v1"
    assert settings.feed_timeout == 10.0
    assert settings.refresh_interval_hours == 24.0


def test_from_env_reads_overrides(clean_env, monkeypatch) -> None:
    """Environment values override the defaults."""
    monkeypatch.setenv("LEDGER_STORE_BACKEND", " Memory ")
    monkeypatch.setenv("RATE_FEED_URL", "http://localhost:8080/v1")
    monkeypatch.setenv("RATE_FEED_TIMEOUT", "2.5")
    monkeypatch.setenv("RATE_REFRESH_INTERVAL_HOURS", "6")

    settings = LedgerSettings.from_env()

    assert settings.backend == "memory"
    assert settings.feed_url == "http://localhost:8080/v1"
    assert settings.feed_timeout == 2.5
    assert settings.refresh_interval_hours == 6.0


def test_invalid_numbers_fall_back_with_warning(clean_env, monkeypatch) -> None:
    """Malformed or non-positive numbers are ignored with a warning."""
    monkeypatch.setenv("RATE_FEED_TIMEOUT", "soon")
    monkeypatch.setenv("RATE_REFRESH_INTERVAL_HOURS", "-1")

    settings = LedgerSettings.from_env()

    assert settings.feed_timeout == 10.0
    assert settings.refresh_interval_hours == 24.0
    assert clean_env.warning.call_count == 2
