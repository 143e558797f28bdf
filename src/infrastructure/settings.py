"""Settings helpers for infrastructure adapters."""

from dataclasses import dataclass
import os

import dotenv

from src.infrastructure.frankfurter_rate_feed import (
    DEFAULT_FEED_URL,
    DEFAULT_TIMEOUT_SECONDS,
)
from src.infrastructure.logging.logger import get_app_logger

DEFAULT_REFRESH_INTERVAL_HOURS = 24.0
SUPPORTED_BACKENDS = ("sqlalchemy", "memory")


@dataclass(frozen=True)
class LedgerSettings:
    """Settings for the rate store backend and the external feed.

    Attributes:
        backend: Store backend identifier (sqlalchemy or memory).
        feed_url: Base URL of the rate feed API.
        feed_timeout: Timeout in seconds for a single feed request.
        refresh_interval_hours: Minimum age of the last refresh before the
            feed is queried again.
    """

    backend: str = "sqlalchemy"
    feed_url: str = DEFAULT_FEED_URL
    feed_timeout: float = DEFAULT_TIMEOUT_SECONDS
    refresh_interval_hours: float = DEFAULT_REFRESH_INTERVAL_HOURS

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        """Build settings from environment variables.

        Returns:
            LedgerSettings: Settings sourced from environment variables.
        """
        dotenv.load_dotenv()
        logger = get_app_logger()
        backend = os.getenv("LEDGER_STORE_BACKEND", "sqlalchemy").strip().lower()
        feed_url = os.getenv("RATE_FEED_URL", "").strip() or DEFAULT_FEED_URL
        feed_timeout = cls._positive_float(
            "RATE_FEED_TIMEOUT",
            DEFAULT_TIMEOUT_SECONDS,
            logger,
        )
        refresh_interval = cls._positive_float(
            "RATE_REFRESH_INTERVAL_HOURS",
            DEFAULT_REFRESH_INTERVAL_HOURS,
            logger,
        )
        return cls(
            backend=backend,
            feed_url=feed_url,
            feed_timeout=feed_timeout,
            refresh_interval_hours=refresh_interval,
        )

    @staticmethod
    def _positive_float(name: str, default: float, logger) -> float:
        """Read a positive float from the environment.

        Args:
            name: Environment variable name.
            default: Value used when the variable is unset or invalid.
            logger: Logger used for warnings.

        Returns:
            float: Parsed value or the default.
        """
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError:
            logger.warning(f"Invalid {name}={raw!r}; using {default}")
            return default
        if value <= 0:
            logger.warning(f"{name} must be positive; using {default}")
            return default
        return value


__all__ = ["LedgerSettings", "SUPPORTED_BACKENDS"]
