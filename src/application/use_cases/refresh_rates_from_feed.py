"""Use case pulling rates from the external feed into the rate store.

A refresh quotes every active currency against the user's base currency,
writes the quotes as fetched edges in one batch and regenerates the closure
of the quote date. Refreshes are throttled per user unless forced.
"""

from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_EVEN, Decimal
from uuid import uuid4

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.ports.rate_feed import RateFeedPort
from src.application.ports.rate_store import RateStorePort
from src.application.ports.user_settings import UserSettingsPort
from src.application.use_cases.generate_closure import GenerateClosureUseCase
from src.domain.constants import MAX_RATE_DECIMAL_PLACES
from src.domain.errors import UpstreamFeedError, ValidationError
from src.domain.models import (
    FeedQuote,
    FeedRefreshResult,
    FeedUpdateStatus,
    RateEdge,
    RateKind,
)
from src.domain.services import require_user, validate_rate
from src.infrastructure.logging.logger import get_app_logger

DEFAULT_REFRESH_INTERVAL_HOURS = 24.0
FEED_RATE_QUANTUM = Decimal(1).scaleb(-MAX_RATE_DECIMAL_PLACES)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RefreshRatesFromFeedUseCase:
    """Refresh fetched edges for a user's active currencies."""

    def __init__(
        self,
        rate_store: RateStorePort,
        currency_registry: CurrencyRegistryPort,
        user_settings: UserSettingsPort,
        rate_feed: RateFeedPort,
        closure: GenerateClosureUseCase,
        logger=None,
        refresh_interval_hours: float = DEFAULT_REFRESH_INTERVAL_HOURS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the use case.

        Args:
            rate_store: Port providing access to the user's rate edges.
            currency_registry: Port providing the user's active currencies.
            user_settings: Port providing the auto-update flag and throttle.
            rate_feed: External source of published rates.
            closure: Use case regenerating derived edges.
            logger: Optional logger compatible with logging.Logger-like API.
            refresh_interval_hours: Minimum hours between unforced refreshes.
            clock: Optional callable returning the current time.
        """
        self._rate_store = rate_store
        self._currency_registry = currency_registry
        self._user_settings = user_settings
        self._rate_feed = rate_feed
        self._closure = closure
        self._logger = logger or get_app_logger()
        self._refresh_interval_hours = refresh_interval_hours
        self._clock = clock or _utc_now

    def execute(
        self,
        user_id: str,
        force: bool = False,
        on_date: date | None = None,
    ) -> FeedRefreshResult:
        """Refresh fetched rates for the user.

        Args:
            user_id: Owning user.
            force: Ignore the auto-update flag and the throttle.
            on_date: Optional historical quote date; latest when omitted.

        Returns:
            FeedRefreshResult: Counts, skipped currencies and the closure of
            the quote date, or a skipped result when throttled.

        Raises:
            ValidationError: If the user has no base currency.
            UpstreamFeedError: If the feed fails or returns an invalid rate;
                the store is left untouched.
        """
        user = require_user(user_id)
        settings = self._user_settings.fetch_settings(user)
        if not force:
            if settings is None or not settings.auto_update_enabled:
                return self._skipped(
                    settings,
                    "Automatic rate updates are disabled",
                )
            status = self.get_update_status(user)
            if not status.needs_update:
                hours = status.hours_since_last_update or 0.0
                return self._skipped(
                    settings,
                    f"Rates were refreshed {round(hours)} hours ago",
                )

        active = self._currency_registry.fetch_active_currencies(user)
        base_code = active.base_currency_code or (
            settings.base_currency_code if settings else None
        )
        if not base_code:
            raise ValidationError(f"User {user} has no base currency")

        quote = self._rate_feed.fetch_rates(base_code, on_date)
        if quote.base_currency != base_code:
            raise UpstreamFeedError(
                f"Feed quoted {quote.base_currency} instead of {base_code}",
                code="INVALID_RESPONSE",
            )
        edges, skipped = self._build_edges(user, quote, active.codes, force)

        with self._rate_store.closure_lock(user, quote.effective_date):
            stored = self._rate_store.upsert_edges(edges) if edges else []
            dependent_dates = {
                dependent.effective_date
                for edge in stored
                for dependent in self._rate_store.fetch_dependent_edges(
                    user,
                    edge.id,
                )
            }
            closures = self._closure.execute_forward(
                user,
                quote.effective_date,
                dependent_dates,
            )

        self._user_settings.record_feed_update(user, self._clock())
        self._logger.info(
            f"Fetched {len(stored)} rates from {quote.source or 'feed'} "
            f"for {base_code} on {quote.effective_date}; "
            f"skipped {len(skipped)}"
        )
        return FeedRefreshResult(
            base_currency=base_code,
            updated_count=len(stored),
            skipped_currencies=skipped,
            effective_date=quote.effective_date,
            source=quote.source,
            closure=next(
                (
                    closure
                    for closure in closures
                    if closure.effective_date == quote.effective_date
                ),
                None,
            ),
        )

    def needs_update(self, user_id: str) -> bool:
        """Return True when an unforced refresh would query the feed."""
        return self.get_update_status(user_id).needs_update

    def get_update_status(self, user_id: str) -> FeedUpdateStatus:
        """Return the auto-update flag and throttle state for a user."""
        user = require_user(user_id)
        settings = self._user_settings.fetch_settings(user)
        if settings is None or not settings.auto_update_enabled:
            return FeedUpdateStatus(
                enabled=False,
                last_update=settings.last_feed_update if settings else None,
                needs_update=False,
                hours_since_last_update=None,
            )
        last_update = settings.last_feed_update
        if last_update is None:
            return FeedUpdateStatus(
                enabled=True,
                last_update=None,
                needs_update=True,
                hours_since_last_update=None,
            )
        if last_update.tzinfo is None:
            last_update = last_update.replace(tzinfo=timezone.utc)
        hours = (self._clock() - last_update).total_seconds() / 3600
        return FeedUpdateStatus(
            enabled=True,
            last_update=settings.last_feed_update,
            needs_update=hours >= self._refresh_interval_hours,
            hours_since_last_update=hours,
        )

    def _build_edges(
        self,
        user_id: str,
        quote: FeedQuote,
        active_codes: tuple[str, ...],
        force: bool,
    ) -> tuple[list[RateEdge], list[str]]:
        update_type = "Manual refresh" if force else "Automatic refresh"
        note = (
            f"{update_type} from {quote.source or 'feed'}, "
            f"quote date {quote.effective_date}"
        )
        edges = []
        skipped = []
        for code in active_codes:
            if code == quote.base_currency:
                continue
            raw = quote.rates.get(code)
            if raw is None:
                self._logger.warning(f"Feed has no rate for {code}; skipping")
                skipped.append(code)
                continue
            try:
                rate = validate_rate(self._quantize(raw))
            except ValidationError as exc:
                raise UpstreamFeedError(
                    f"Feed returned an invalid rate for {code}: {raw}",
                    code="INVALID_RATE",
                ) from exc
            edges.append(
                RateEdge(
                    id=str(uuid4()),
                    user_id=user_id,
                    from_currency=quote.base_currency,
                    to_currency=code,
                    rate=rate,
                    effective_date=quote.effective_date,
                    kind=RateKind.FETCHED,
                    note=note,
                )
            )
        return edges, skipped

    @staticmethod
    def _quantize(raw: Decimal) -> Decimal:
        if not isinstance(raw, Decimal) or not raw.is_finite():
            return raw
        exponent = raw.as_tuple().exponent
        if -exponent <= MAX_RATE_DECIMAL_PLACES:
            return raw
        return raw.quantize(FEED_RATE_QUANTUM, rounding=ROUND_HALF_EVEN)

    def _skipped(self, settings, reason: str) -> FeedRefreshResult:
        self._logger.info(f"Skipping rate refresh: {reason}")
        return FeedRefreshResult(
            base_currency=settings.base_currency_code if settings else None,
            updated_count=0,
            skipped=True,
            skip_reason=reason,
        )


__all__ = ["RefreshRatesFromFeedUseCase", "DEFAULT_REFRESH_INTERVAL_HOURS"]
