"""Tests for rate store backend selection."""

from unittest.mock import MagicMock

import pytest

from src.infrastructure import rate_store_factory as factory
from src.infrastructure.in_memory_repositories import InMemoryRateStore
from src.infrastructure.rate_store_repository import SqlAlchemyRateStore


def test_factory_defaults_to_sqlalchemy(monkeypatch) -> None:
    """Factory should return the SQL store by default."""
    monkeypatch.delenv("LEDGER_STORE_BACKEND", raising=False)

    store = factory.create_rate_store(MagicMock(), logger=MagicMock())

    assert isinstance(store, SqlAlchemyRateStore)


def test_factory_uses_memory_backend(monkeypatch) -> None:
    """Factory should honor the memory backend from the environment."""
    monkeypatch.setenv("LEDGER_STORE_BACKEND", "memory")
    logger = MagicMock()

    store = factory.create_rate_store(None, logger=logger)

    assert isinstance(store, InMemoryRateStore)
    logger.warning.assert_called_once()


def test_factory_rejects_unknown_backend() -> None:
    """Unsupported backends raise ValueError."""
    with pytest.raises(ValueError):
        factory.create_rate_store(MagicMock(), logger=MagicMock(), backend="redis")


def test_factory_requires_database_for_sql_backend() -> None:
    """The SQL backend needs a database adapter."""
    with pytest.raises(RuntimeError):
        factory.create_rate_store(None, logger=MagicMock(), backend="sqlalchemy")
