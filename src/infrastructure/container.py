"""Composition root for wiring infrastructure adapters."""

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.ports.database import DatabaseEnginePort
from src.application.ports.rate_feed import RateFeedPort
from src.application.ports.rate_store import RateStorePort
from src.application.ports.user_settings import UserSettingsPort
from src.application.use_cases.rate_engine import RateEngine
from src.infrastructure.currency_registry_repository import (
    SqlAlchemyCurrencyRegistry,
)
from src.infrastructure.db import SqlAlchemyDatabaseEngineAdapter
from src.infrastructure.frankfurter_rate_feed import FrankfurterRateFeed
from src.infrastructure.in_memory_repositories import (
    InMemoryCurrencyRegistry,
    InMemoryUserSettings,
)
from src.infrastructure.ledger_schema import ensure_schema
from src.infrastructure.logging.logger import get_app_logger
from src.infrastructure.rate_store_factory import create_rate_store
from src.infrastructure.settings import LedgerSettings
from src.infrastructure.user_settings_repository import SqlAlchemyUserSettings


def build_database_adapter() -> DatabaseEnginePort:
    """Return the database adapter instance."""
    return SqlAlchemyDatabaseEngineAdapter()


def build_rate_store(
    db_port: DatabaseEnginePort | None = None,
    settings: LedgerSettings | None = None,
) -> RateStorePort:
    """Return the configured rate store."""
    resolved_settings = settings or LedgerSettings.from_env()
    resolved_db = None
    if resolved_settings.backend == "sqlalchemy":
        resolved_db = db_port or build_database_adapter()
    return create_rate_store(
        resolved_db,
        logger=get_app_logger(),
        backend=resolved_settings.backend,
    )


def build_currency_registry(
    db_port: DatabaseEnginePort | None = None,
    settings: LedgerSettings | None = None,
) -> CurrencyRegistryPort:
    """Return the configured currency registry."""
    resolved_settings = settings or LedgerSettings.from_env()
    if resolved_settings.backend == "memory":
        return InMemoryCurrencyRegistry()
    resolved_db = db_port or build_database_adapter()
    return SqlAlchemyCurrencyRegistry(resolved_db, logger=get_app_logger())


def build_user_settings(
    db_port: DatabaseEnginePort | None = None,
    settings: LedgerSettings | None = None,
) -> UserSettingsPort:
    """Return the configured per-user settings repository."""
    resolved_settings = settings or LedgerSettings.from_env()
    if resolved_settings.backend == "memory":
        return InMemoryUserSettings()
    resolved_db = db_port or build_database_adapter()
    return SqlAlchemyUserSettings(resolved_db)


def build_rate_feed(settings: LedgerSettings | None = None) -> RateFeedPort:
    """Return the external rate feed client."""
    resolved_settings = settings or LedgerSettings.from_env()
    return FrankfurterRateFeed(
        base_url=resolved_settings.feed_url,
        timeout=resolved_settings.feed_timeout,
        logger=get_app_logger(),
    )


def build_rate_engine(
    db_port: DatabaseEnginePort | None = None,
    settings: LedgerSettings | None = None,
) -> RateEngine:
    """Return a rate engine wired to the configured adapters.

    The SQL backend gets its tables created on first use.
    """
    resolved_settings = settings or LedgerSettings.from_env()
    resolved_db = None
    if resolved_settings.backend == "sqlalchemy":
        resolved_db = db_port or build_database_adapter()
        ensure_schema(resolved_db.get_ledger_engine())
    return RateEngine(
        rate_store=build_rate_store(resolved_db, resolved_settings),
        currency_registry=build_currency_registry(resolved_db, resolved_settings),
        user_settings=build_user_settings(resolved_db, resolved_settings),
        rate_feed=build_rate_feed(resolved_settings),
        logger=get_app_logger(),
        refresh_interval_hours=resolved_settings.refresh_interval_hours,
    )


__all__ = [
    "build_database_adapter",
    "build_rate_store",
    "build_currency_registry",
    "build_user_settings",
    "build_rate_feed",
    "build_rate_engine",
]
