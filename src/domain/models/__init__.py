"""Domain models package."""

from .conversion import ConversionResult, ConvertedTotal, MoneyAmount
from .currency import (
    ActiveCurrencySet,
    Currency,
    CurrencyGap,
    UserRateSettings,
)
from .rates import (
    ClosureResult,
    FeedQuote,
    FeedRefreshResult,
    FeedUpdateStatus,
    RateEdge,
    RateFound,
    RateKind,
    RateNotFound,
    RateResult,
    RecordRateResult,
)

__all__ = [
    "ActiveCurrencySet",
    "ClosureResult",
    "ConversionResult",
    "ConvertedTotal",
    "Currency",
    "CurrencyGap",
    "FeedQuote",
    "FeedRefreshResult",
    "FeedUpdateStatus",
    "MoneyAmount",
    "RateEdge",
    "RateFound",
    "RateKind",
    "RateNotFound",
    "RateResult",
    "RecordRateResult",
    "UserRateSettings",
]
