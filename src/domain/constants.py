"""Domain constants for exchange-rate handling."""

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal

# Inclusive upper bound accepted for authoritative rates.
MAX_RATE = Decimal("1000000")

# Maximum number of decimal places accepted on authoritative rates.
MAX_RATE_DECIMAL_PLACES = 8

# Derived rates are rounded to a fixed number of significant digits so
# regeneration yields identical values.
DERIVED_RATE_SIGNIFICANT_DIGITS = 15
DERIVED_RATE_ROUNDING = ROUND_HALF_EVEN

# Working precision for inverses and path products before rounding.
GRAPH_WORKING_PRECISION = 40

# Rounding applied to every converted amount that is displayed or summed.
AMOUNT_ROUNDING = ROUND_HALF_UP

MIN_DECIMAL_PLACES = 0
MAX_DECIMAL_PLACES = 10
DEFAULT_DECIMAL_PLACES = 2

MAX_NOTE_LENGTH = 500

# Absolute tolerance when checking a rate against its authoritative reverse.
REVERSE_RATE_TOLERANCE = Decimal("0.0001")

CURRENCY_CODE_PATTERN = r"^[A-Z][A-Z0-9]{1,9}$"


__all__ = [
    "MAX_RATE",
    "MAX_RATE_DECIMAL_PLACES",
    "DERIVED_RATE_SIGNIFICANT_DIGITS",
    "DERIVED_RATE_ROUNDING",
    "GRAPH_WORKING_PRECISION",
    "AMOUNT_ROUNDING",
    "MIN_DECIMAL_PLACES",
    "MAX_DECIMAL_PLACES",
    "DEFAULT_DECIMAL_PLACES",
    "MAX_NOTE_LENGTH",
    "REVERSE_RATE_TOLERANCE",
    "CURRENCY_CODE_PATTERN",
]
