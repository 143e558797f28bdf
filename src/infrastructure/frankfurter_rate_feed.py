"""HTTP client for the Frankfurter exchange-rate API."""

from datetime import date
from decimal import Decimal, InvalidOperation

import requests

from src.application.ports.rate_feed import RateFeedPort
from src.domain.errors import UpstreamFeedError
from src.domain.models import FeedQuote
from src.infrastructure.logging.logger import get_app_logger

DEFAULT_FEED_URL = "https://api.frankfurter.dev/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0
FEED_SOURCE = "frankfurter"


class FrankfurterRateFeed(RateFeedPort):
    """Rate feed reading published reference rates over HTTPS.

    Every failure mode (network errors, unsupported currencies, rate limits,
    server errors, unexpected payloads) surfaces as UpstreamFeedError with a
    stable code so callers can report it without knowing about HTTP.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_FEED_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        logger=None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._logger = logger or get_app_logger()

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
        segment = on_date.isoformat() if on_date else "latest"
        url = f"{self._base_url}/{segment}"
        try:
            response = self._session.get(
                url,
                params={"base": base_currency},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._logger.error(f"Rate feed request failed: {exc}")
            raise UpstreamFeedError(
                f"Rate feed request failed: {exc}",
                code="NETWORK_ERROR",
            ) from exc

        self._raise_for_status(response, base_currency)

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFeedError(
                "Rate feed returned invalid JSON",
                code="INVALID_RESPONSE",
            ) from exc
        return self._parse_payload(payload, base_currency)

    def _raise_for_status(self, response, base_currency: str) -> None:
        status = response.status_code
        if status == 200:
            return
        if status == 404:
            code = "CURRENCY_NOT_SUPPORTED"
            message = f"Currency {base_currency} is not supported by the feed"
        elif status == 429:
            code = "RATE_LIMIT_EXCEEDED"
            message = "Rate feed rate limit exceeded"
        elif status >= 500:
            code = "SERVICE_UNAVAILABLE"
            message = f"Rate feed unavailable (HTTP {status})"
        else:
            code = "FEED_ERROR"
            message = f"Rate feed returned HTTP {status}"
        self._logger.warning(message)
        raise UpstreamFeedError(message, code=code)

    @staticmethod
    def _parse_payload(payload, base_currency: str) -> FeedQuote:
        if not isinstance(payload, dict):
            raise UpstreamFeedError(
                "Rate feed payload is not an object",
                code="INVALID_RESPONSE",
            )
        rates = payload.get("rates")
        raw_date = payload.get("date")
        if not isinstance(rates, dict) or not raw_date:
            raise UpstreamFeedError(
                "Rate feed payload is missing rates or date",
                code="INVALID_RESPONSE",
            )
        try:
            effective_date = date.fromisoformat(str(raw_date)[:10])
            parsed = {
                str(code).upper(): Decimal(str(value))
                for code, value in rates.items()
            }
        except (InvalidOperation, ValueError) as exc:
            raise UpstreamFeedError(
                f"Rate feed payload is malformed: {exc}",
                code="INVALID_RESPONSE",
            ) from exc
        return FeedQuote(
            base_currency=str(payload.get("base") or base_currency).upper(),
            effective_date=effective_date,
            rates=parsed,
            source=FEED_SOURCE,
        )


__all__ = ["FrankfurterRateFeed", "DEFAULT_FEED_URL", "DEFAULT_TIMEOUT_SECONDS"]
