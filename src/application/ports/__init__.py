"""Application ports package."""

from .currency_registry import CurrencyRegistryPort
from .database import DatabaseEnginePort
from .rate_feed import RateFeedPort
from .rate_store import RateStorePort
from .user_settings import UserSettingsPort

__all__ = [
    "CurrencyRegistryPort",
    "DatabaseEnginePort",
    "RateFeedPort",
    "RateStorePort",
    "UserSettingsPort",
]
