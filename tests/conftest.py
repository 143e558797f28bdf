"""Shared fixtures for the exchange-rate engine tests."""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest

from src.application.use_cases.rate_engine import RateEngine
from src.domain.models import Currency
from src.infrastructure.in_memory_repositories import (
    InMemoryCurrencyRegistry,
    InMemoryRateStore,
    InMemoryUserSettings,
)

USER = "user-1"
DAY = date(2024, 1, 1)
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

GLOBAL_CURRENCIES = [
    Currency(code="USD", symbol="$", decimal_places=2, name="US Dollar"),
    Currency(code="EUR", symbol="€", decimal_places=2, name="Euro"),
    Currency(code="CNY", symbol="¥", decimal_places=2, name="Yuan"),
    Currency(code="JPY", symbol="¥", decimal_places=0, name="Yen"),
    Currency(code="GBP", symbol="£", decimal_places=2, name="Pound"),
]


@pytest.fixture
def logger():
    return MagicMock()


@pytest.fixture
def rate_store():
    return InMemoryRateStore()


@pytest.fixture
def registry():
    return InMemoryCurrencyRegistry(
        currencies=list(GLOBAL_CURRENCIES),
        active={USER: (["USD", "EUR", "CNY"], "USD")},
    )


@pytest.fixture
def user_settings():
    return InMemoryUserSettings()


@pytest.fixture
def engine(rate_store, registry, user_settings, logger):
    return RateEngine(
        rate_store=rate_store,
        currency_registry=registry,
        user_settings=user_settings,
        logger=logger,
        clock=lambda: NOW,
    )
