"""Tests for conversion of amounts, balances and flows."""

from datetime import date
from decimal import Decimal

import pytest

from src.domain.errors import ValidationError
from src.domain.models import MoneyAmount

USER = "user-1"
DAY = date(2024, 1, 1)


@pytest.fixture
def seeded_engine(engine):
    engine.record_rate(USER, "USD", "EUR", "0.92", DAY)
    engine.record_rate(USER, "USD", "CNY", "7.1", DAY)
    return engine


def test_convert_rounds_to_target_precision(seeded_engine):
    """Values round half-up to the target precision; precise is kept."""
    result = seeded_engine.convert(USER, Decimal("100"), "EUR", "USD", DAY)

    assert result.success
    assert result.value == Decimal("108.70")
    assert abs(result.precise - Decimal("108.6956521739")) < Decimal("0.0001")
    assert result.rate_date == DAY


def test_convert_flags_missing_rates(seeded_engine):
    """A missing rate is flagged, never treated as 1:1 or zero."""
    result = seeded_engine.convert(USER, Decimal("10"), "GBP", "USD", DAY)

    assert not result.success
    assert result.value is None
    assert result.rate is None


def test_unknown_target_currency_is_rejected(seeded_engine):
    """Targets must be visible to the user."""
    with pytest.raises(ValidationError):
        seeded_engine.convert(USER, Decimal("1"), "USD", "XXX", DAY)


def test_convert_balances_totals_rounded_items(seeded_engine):
    """The total equals the sum of the rounded items."""
    amounts = [
        MoneyAmount(Decimal("1.005"), "USD"),
        MoneyAmount(Decimal("1.005"), "USD"),
    ]

    total = seeded_engine.convert_balances(USER, amounts, "USD", DAY)

    assert total.total == Decimal("2.02")
    assert [item.value for item in total.items] == [Decimal("1.01")] * 2
    assert not total.has_conversion_errors


def test_convert_balances_reports_missing_pairs(seeded_engine):
    """Unconvertible items set the error flag and are left out of the total."""
    amounts = [
        MoneyAmount(Decimal("100"), "EUR"),
        MoneyAmount(Decimal("50"), "USD"),
        MoneyAmount(Decimal("5"), "GBP"),
        MoneyAmount(Decimal("6"), "GBP"),
    ]

    total = seeded_engine.convert_balances(USER, amounts, "USD", DAY)

    assert total.total == Decimal("158.70")
    assert total.has_conversion_errors
    assert total.missing_pairs == [("GBP", "USD")]
    assert total.currency_code == "USD"


def test_convert_flows_uses_each_amount_date(seeded_engine):
    """Flow amounts convert at the rate of their own date."""
    later = date(2024, 2, 1)
    seeded_engine.record_rate(USER, "USD", "EUR", "0.5", later)
    amounts = [
        MoneyAmount(Decimal("10"), "EUR", on_date=DAY),
        MoneyAmount(Decimal("10"), "EUR", on_date=later),
    ]

    total = seeded_engine.convert_flows(USER, amounts, "USD")

    assert [item.value for item in total.items] == [Decimal("10.87"), Decimal("20.00")]
    assert total.total == Decimal("30.87")


def test_convert_flows_requires_dates(seeded_engine):
    """Flow amounts without a date are rejected."""
    with pytest.raises(ValidationError):
        seeded_engine.convert_flows(
            USER,
            [MoneyAmount(Decimal("1"), "EUR")],
            "USD",
        )


def test_zero_decimal_target(seeded_engine, registry):
    """Targets without minor units round to whole numbers."""
    registry.set_active_currencies(USER, ["USD", "EUR", "CNY", "JPY"], "USD")
    seeded_engine.record_rate(USER, "USD", "JPY", "141.5", DAY)

    result = seeded_engine.convert(USER, Decimal("3"), "USD", "JPY", DAY)

    assert result.value == Decimal("425")


@pytest.mark.parametrize("amount", [None, "abc", Decimal("NaN"), "Infinity"])
def test_missing_or_malformed_amounts_are_rejected(seeded_engine, amount):
    """Amounts must be finite numbers; None is never read as zero."""
    with pytest.raises(ValidationError):
        seeded_engine.convert(USER, amount, "EUR", "USD", DAY)
    with pytest.raises(ValidationError):
        seeded_engine.convert_balances(
            USER,
            [MoneyAmount(amount, "EUR")],
            "USD",
            DAY,
        )


def test_large_balances_are_summed_exactly(seeded_engine):
    """Totals beyond 28 significant digits keep their minor units."""
    amounts = [
        MoneyAmount(Decimal("999999999999999999999999999.99"), "USD"),
        MoneyAmount(Decimal("0.02"), "USD"),
    ]

    total = seeded_engine.convert_balances(USER, amounts, "USD", DAY)

    assert total.total == Decimal("1000000000000000000000000000.01")
