"""Use case converting monetary amounts into a target currency."""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.use_cases.resolve_rate import ResolveRateUseCase
from src.domain.errors import ValidationError
from src.domain.models import (
    ConversionResult,
    ConvertedTotal,
    Currency,
    MoneyAmount,
    RateResult,
)
from src.domain.services import (
    multiply_amount,
    normalize_effective_date,
    require_user,
    round_amount,
    sum_amounts,
    validate_currency_code,
)
from src.infrastructure.logging.logger import get_app_logger
from src.utils.decimal_utils import coerce_decimal


class ConvertAmountsUseCase:
    """Convert single amounts, balances and flows with rounding.

    A missing rate never turns into a 1:1 or zero conversion: the item is
    flagged and the aggregate carries ``has_conversion_errors``.
    """

    def __init__(
        self,
        resolver: ResolveRateUseCase,
        currency_registry: CurrencyRegistryPort,
        logger=None,
    ) -> None:
        """Initialize the use case.

        Args:
            resolver: Use case resolving individual rates.
            currency_registry: Port used to look up the target precision.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._resolver = resolver
        self._currency_registry = currency_registry
        self._logger = logger or get_app_logger()

    def convert(
        self,
        user_id: str,
        amount,
        from_currency: str,
        to_currency: str,
        on_date: date | datetime | str,
    ) -> ConversionResult:
        """Convert one amount at the rate effective on a date.

        Args:
            user_id: Owning user.
            amount: Amount in from_currency.
            from_currency: Source currency code.
            to_currency: Target currency code.
            on_date: Conversion date.

        Returns:
            ConversionResult: Rounded and precise values, or a flagged result
            when no rate exists.
        """
        user = require_user(user_id)
        target = self._target_currency(user, to_currency)
        day = normalize_effective_date(on_date)
        return self._convert_one(
            user,
            self._amount(amount),
            validate_currency_code(from_currency),
            target,
            day,
            {},
        )

    def convert_balances(
        self,
        user_id: str,
        amounts: Iterable[MoneyAmount],
        target_currency: str,
        as_of: date | datetime | str,
    ) -> ConvertedTotal:
        """Convert point-in-time balances, all at the as_of rate."""
        user = require_user(user_id)
        target = self._target_currency(user, target_currency)
        day = normalize_effective_date(as_of)
        cache: dict[tuple[str, date], RateResult] = {}
        items = [
            self._convert_one(
                user,
                self._amount(item.amount),
                validate_currency_code(item.currency_code),
                target,
                day,
                cache,
            )
            for item in amounts
        ]
        return self._summarize(items, target)

    def convert_flows(
        self,
        user_id: str,
        amounts: Iterable[MoneyAmount],
        target_currency: str,
    ) -> ConvertedTotal:
        """Convert period flows, each at the rate of its own date.

        Raises:
            ValidationError: If an amount carries no date.
        """
        user = require_user(user_id)
        target = self._target_currency(user, target_currency)
        cache: dict[tuple[str, date], RateResult] = {}
        items = []
        for item in amounts:
            if item.on_date is None:
                raise ValidationError(
                    f"Flow amount in {item.currency_code} has no date"
                )
            items.append(
                self._convert_one(
                    user,
                    self._amount(item.amount),
                    validate_currency_code(item.currency_code),
                    target,
                    normalize_effective_date(item.on_date),
                    cache,
                )
            )
        return self._summarize(items, target)

    def _target_currency(self, user_id: str, code: str) -> Currency:
        normalized = validate_currency_code(code)
        currency = self._currency_registry.fetch_currency(user_id, normalized)
        if currency is None:
            raise ValidationError(f"Unknown target currency: {normalized}")
        return currency

    @staticmethod
    def _amount(value) -> Decimal:
        try:
            amount = coerce_decimal(value, allow_none=False)
        except ValueError as exc:
            raise ValidationError(f"Invalid amount: {value!r}") from exc
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount: {value!r}")
        return amount

    def _convert_one(
        self,
        user_id: str,
        amount: Decimal,
        from_code: str,
        target: Currency,
        day: date,
        cache: dict[tuple[str, date], RateResult],
    ) -> ConversionResult:
        key = (from_code, day)
        result = cache.get(key)
        if result is None:
            result = self._resolver.execute(user_id, from_code, target.code, day)
            cache[key] = result
        if not result.is_found:
            self._logger.warning(
                f"Missing FX rate for {from_code} to {target.code} on {day}"
            )
            return ConversionResult(
                original_amount=amount,
                from_currency=from_code,
                to_currency=target.code,
                on_date=day,
                value=None,
                precise=None,
                rate=None,
                rate_date=None,
            )
        precise = multiply_amount(amount, result.rate)
        return ConversionResult(
            original_amount=amount,
            from_currency=from_code,
            to_currency=target.code,
            on_date=day,
            value=round_amount(precise, target.decimal_places),
            precise=precise,
            rate=result.rate,
            rate_date=result.effective_date,
        )

    @staticmethod
    def _summarize(
        items: list[ConversionResult],
        target: Currency,
    ) -> ConvertedTotal:
        total = sum_amounts(
            (item.value for item in items if item.value is not None),
            round_amount(Decimal("0"), target.decimal_places),
        )
        missing: list[tuple[str, str]] = []
        for item in items:
            pair = (item.from_currency, item.to_currency)
            if not item.success and pair not in missing:
                missing.append(pair)
        return ConvertedTotal(
            total=total,
            currency_code=target.code,
            items=items,
            has_conversion_errors=bool(missing),
            missing_pairs=missing,
        )


__all__ = ["ConvertAmountsUseCase"]
