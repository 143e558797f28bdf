"""Domain package for exchange-rate rules and core models."""

from .errors import (
    LedgerFxError,
    MissingUserContextError,
    RateEdgeNotFoundError,
    UpstreamFeedError,
    ValidationError,
)
from .models import (
    ActiveCurrencySet,
    ClosureResult,
    ConversionResult,
    ConvertedTotal,
    Currency,
    CurrencyGap,
    MoneyAmount,
    RateEdge,
    RateFound,
    RateKind,
    RateNotFound,
    RateResult,
)
from .policies import visible_currencies
from .services import compute_closure, round_amount, select_effective_edge

__all__ = [
    "ActiveCurrencySet",
    "ClosureResult",
    "ConversionResult",
    "ConvertedTotal",
    "Currency",
    "CurrencyGap",
    "MoneyAmount",
    "RateEdge",
    "RateFound",
    "RateKind",
    "RateNotFound",
    "RateResult",
    "LedgerFxError",
    "MissingUserContextError",
    "RateEdgeNotFoundError",
    "UpstreamFeedError",
    "ValidationError",
    "compute_closure",
    "round_amount",
    "select_effective_edge",
    "visible_currencies",
]
