"""Facade exposing the exchange-rate engine to any transport."""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.ports.rate_feed import RateFeedPort
from src.application.ports.rate_store import RateStorePort
from src.application.ports.user_settings import UserSettingsPort
from src.application.use_cases.convert_amounts import ConvertAmountsUseCase
from src.application.use_cases.find_gaps import FindRateGapsUseCase
from src.application.use_cases.generate_closure import GenerateClosureUseCase
from src.application.use_cases.record_rate import RecordRateUseCase
from src.application.use_cases.refresh_rates_from_feed import (
    DEFAULT_REFRESH_INTERVAL_HOURS,
    RefreshRatesFromFeedUseCase,
)
from src.application.use_cases.resolve_rate import ResolveRateUseCase
from src.domain.models import (
    ClosureResult,
    ConversionResult,
    ConvertedTotal,
    Currency,
    CurrencyGap,
    FeedRefreshResult,
    FeedUpdateStatus,
    MoneyAmount,
    RateKind,
    RateResult,
    RecordRateResult,
)
from src.domain.services import (
    require_user,
    validate_currency_code,
    validate_decimal_places,
)
from src.infrastructure.logging.logger import get_app_logger


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RateEngine:
    """Entry point wiring the rate use cases around injected ports.

    The engine owns no storage of its own; every call goes through the ports
    handed to the constructor, so the same engine serves SQL-backed services
    and in-memory tests.
    """

    def __init__(
        self,
        rate_store: RateStorePort,
        currency_registry: CurrencyRegistryPort,
        user_settings: UserSettingsPort | None = None,
        rate_feed: RateFeedPort | None = None,
        logger=None,
        clock: Callable[[], datetime] | None = None,
        refresh_interval_hours: float = DEFAULT_REFRESH_INTERVAL_HOURS,
    ) -> None:
        """Initialize the engine.

        Args:
            rate_store: Port providing access to rate edges.
            currency_registry: Port providing currencies and active sets.
            user_settings: Optional port required by feed refreshes.
            rate_feed: Optional external feed required by feed refreshes.
            logger: Optional logger compatible with logging.Logger-like API.
            clock: Optional callable returning the current time.
            refresh_interval_hours: Minimum hours between unforced refreshes.
        """
        self._logger = logger or get_app_logger()
        self._clock = clock or _utc_now
        self._currency_registry = currency_registry
        self._resolver = ResolveRateUseCase(rate_store, logger=self._logger)
        self._closure = GenerateClosureUseCase(
            rate_store,
            currency_registry,
            logger=self._logger,
        )
        self._recorder = RecordRateUseCase(
            rate_store,
            self._closure,
            logger=self._logger,
            clock=self._clock,
        )
        self._gaps = FindRateGapsUseCase(
            currency_registry,
            self._resolver,
            logger=self._logger,
            today=lambda: self._clock().date(),
        )
        self._converter = ConvertAmountsUseCase(
            self._resolver,
            currency_registry,
            logger=self._logger,
        )
        self._refresher = None
        if user_settings is not None and rate_feed is not None:
            self._refresher = RefreshRatesFromFeedUseCase(
                rate_store,
                currency_registry,
                user_settings,
                rate_feed,
                self._closure,
                logger=self._logger,
                refresh_interval_hours=refresh_interval_hours,
                clock=self._clock,
            )

    def resolve(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        as_of: date | datetime | str,
    ) -> RateResult:
        return self._resolver.execute(user_id, from_currency, to_currency, as_of)

    def generate_closure(
        self,
        user_id: str,
        effective_date: date | datetime | str,
    ) -> ClosureResult:
        return self._closure.execute(user_id, effective_date)

    def find_gaps(
        self,
        user_id: str,
        today: date | None = None,
    ) -> list[CurrencyGap]:
        return self._gaps.execute(user_id, today)

    def convert(
        self,
        user_id: str,
        amount,
        from_currency: str,
        to_currency: str,
        on_date: date | datetime | str,
    ) -> ConversionResult:
        return self._converter.convert(
            user_id,
            amount,
            from_currency,
            to_currency,
            on_date,
        )

    def convert_balances(
        self,
        user_id: str,
        amounts: Iterable[MoneyAmount],
        target_currency: str,
        as_of: date | datetime | str,
    ) -> ConvertedTotal:
        return self._converter.convert_balances(
            user_id,
            amounts,
            target_currency,
            as_of,
        )

    def convert_flows(
        self,
        user_id: str,
        amounts: Iterable[MoneyAmount],
        target_currency: str,
    ) -> ConvertedTotal:
        return self._converter.convert_flows(user_id, amounts, target_currency)

    def record_rate(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        rate,
        effective_date: date | datetime | str,
        kind: RateKind = RateKind.MANUAL,
        note: str | None = None,
    ) -> RecordRateResult:
        return self._recorder.record(
            user_id,
            from_currency,
            to_currency,
            rate,
            effective_date,
            kind=kind,
            note=note,
        )

    def delete_rate(self, user_id: str, edge_id: str) -> RecordRateResult:
        return self._recorder.delete(user_id, edge_id)

    def refresh_from_feed(
        self,
        user_id: str,
        force: bool = False,
        on_date: date | None = None,
    ) -> FeedRefreshResult:
        return self._require_refresher().execute(
            user_id,
            force=force,
            on_date=on_date,
        )

    def get_update_status(self, user_id: str) -> FeedUpdateStatus:
        return self._require_refresher().get_update_status(user_id)

    def create_custom_currency(
        self,
        user_id: str,
        code: str,
        symbol: str,
        decimal_places: int,
        name: str = "",
    ) -> Currency:
        """Create a user-owned currency shadowing any global of that code.

        Args:
            user_id: Owning user.
            code: Currency code.
            symbol: Display symbol.
            decimal_places: Rounding precision (0-10).
            name: Human-readable name.

        Returns:
            Currency: The stored currency.
        """
        user = require_user(user_id)
        currency = Currency(
            code=validate_currency_code(code),
            symbol=symbol,
            decimal_places=validate_decimal_places(decimal_places),
            name=name,
            owner_user_id=user,
        )
        return self._currency_registry.create_custom_currency(user, currency)

    def _require_refresher(self) -> RefreshRatesFromFeedUseCase:
        if self._refresher is None:
            raise RuntimeError(
                "Feed refresh requires user settings and a rate feed."
            )
        return self._refresher


__all__ = ["RateEngine"]
