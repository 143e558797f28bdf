"""Application use cases package."""

from .resolve_rate import ResolveRateUseCase
from .generate_closure import GenerateClosureUseCase
from .record_rate import RecordRateUseCase
from .find_gaps import FindRateGapsUseCase
from .convert_amounts import ConvertAmountsUseCase
from .refresh_rates_from_feed import RefreshRatesFromFeedUseCase
from .rate_engine import RateEngine

__all__ = [
    "ResolveRateUseCase",
    "GenerateClosureUseCase",
    "RecordRateUseCase",
    "FindRateGapsUseCase",
    "ConvertAmountsUseCase",
    "RefreshRatesFromFeedUseCase",
    "RateEngine",
]
