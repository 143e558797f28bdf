"""Rounding helpers for converted amounts.

Amount arithmetic runs in a local context wide enough to stay exact, so large
balances are never silently rounded to the default 28 digits.
"""

from collections.abc import Iterable
from decimal import MAX_PREC, Decimal, localcontext

from src.domain.constants import AMOUNT_ROUNDING


def round_amount(amount: Decimal, decimal_places: int) -> Decimal:
    """Round an amount to a currency precision.

    Args:
        amount: Unrounded amount.
        decimal_places: Currency precision (0-10).

    Returns:
        Decimal: Amount quantized with the shared rounding mode.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + decimal_places + 2)
        return amount.quantize(quantum, rounding=AMOUNT_ROUNDING)


def multiply_amount(amount: Decimal, rate: Decimal) -> Decimal:
    """Return the exact product of an amount and a rate."""
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        return amount * rate


def sum_amounts(amounts: Iterable[Decimal], start: Decimal) -> Decimal:
    """Return the exact sum of already rounded amounts."""
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        return sum(amounts, start)


__all__ = ["round_amount", "multiply_amount", "sum_amounts"]
