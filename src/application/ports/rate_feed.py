"""Application port for external exchange-rate feeds."""

from datetime import date
from typing import Protocol

from src.domain.models import FeedQuote


class RateFeedPort(Protocol):
    """Port exposing an external source of published rates."""

    def fetch_rates(
        self,
        base_currency: str,
        on_date: date | None = None,
    ) -> FeedQuote:
        """Return rates quoted against base_currency.

        Args:
            base_currency: Currency every returned rate is quoted from.
            on_date: Optional historical date; latest rates when omitted.

        Returns:
            FeedQuote: Published rates and the date they apply to.

        Raises:
            UpstreamFeedError: If the feed is unavailable or malformed.
        """


__all__ = ["RateFeedPort"]
