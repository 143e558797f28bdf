"""Domain services package."""

from .normalization import normalize_currency_code, normalize_effective_date
from .rate_graph import ClosurePlan, DerivedRate, compute_closure
from .rate_selection import latest_edges_by_pair, select_effective_edge
from .rounding import multiply_amount, round_amount, sum_amounts
from .validation import (
    check_reverse_consistency,
    require_user,
    validate_currency_code,
    validate_currency_pair,
    validate_decimal_places,
    validate_not_future,
    validate_note,
    validate_rate,
)

__all__ = [
    "ClosurePlan",
    "DerivedRate",
    "compute_closure",
    "latest_edges_by_pair",
    "select_effective_edge",
    "round_amount",
    "multiply_amount",
    "sum_amounts",
    "normalize_currency_code",
    "normalize_effective_date",
    "check_reverse_consistency",
    "require_user",
    "validate_currency_code",
    "validate_currency_pair",
    "validate_decimal_places",
    "validate_not_future",
    "validate_note",
    "validate_rate",
]
