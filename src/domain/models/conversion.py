"""Domain models for converted monetary amounts."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class MoneyAmount:
    """Amount in its native currency, optionally dated.

    Attributes:
        amount: Native amount.
        currency_code: Currency of ``amount``.
        on_date: Transaction date for flow-style sums.
    """

    amount: Decimal
    currency_code: str
    on_date: date | None = None


@dataclass(frozen=True)
class ConversionResult:
    """Conversion of one amount into a target currency.

    ``value`` is rounded to the target currency precision and ``precise`` is
    the unrounded product. Both are None when no rate could be resolved.
    """

    original_amount: Decimal
    from_currency: str
    to_currency: str
    on_date: date
    value: Decimal | None
    precise: Decimal | None
    rate: Decimal | None
    rate_date: date | None

    @property
    def success(self) -> bool:
        """Return True when a rate was resolved for this amount."""
        return self.value is not None


@dataclass(frozen=True)
class ConvertedTotal:
    """Sum of converted amounts annotated with reliability.

    Attributes:
        total: Sum of the rounded converted items.
        currency_code: Target currency.
        items: Per-amount conversion results, in input order.
        has_conversion_errors: True when at least one amount was not converted.
        missing_pairs: Distinct (from, to) pairs without a rate.
    """

    total: Decimal
    currency_code: str
    items: list[ConversionResult] = field(default_factory=list)
    has_conversion_errors: bool = False
    missing_pairs: list[tuple[str, str]] = field(default_factory=list)


__all__ = ["MoneyAmount", "ConversionResult", "ConvertedTotal"]
