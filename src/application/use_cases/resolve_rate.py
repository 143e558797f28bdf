"""Use case resolving the conversion factor between two currencies."""

from datetime import date, datetime
from decimal import Decimal

from src.application.ports.rate_store import RateStorePort
from src.domain.models import RateFound, RateNotFound, RateResult
from src.domain.services import (
    normalize_effective_date,
    require_user,
    select_effective_edge,
    validate_currency_code,
)
from src.infrastructure.logging.logger import get_app_logger


class ResolveRateUseCase:
    """Look up the governing rate edge for a pair as of a date."""

    def __init__(self, rate_store: RateStorePort, logger=None) -> None:
        """Initialize the use case.

        Args:
            rate_store: Port providing access to the user's rate edges.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._rate_store = rate_store
        self._logger = logger or get_app_logger()

    def execute(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        as_of: date | datetime | str,
    ) -> RateResult:
        """Return the rate converting from_currency into to_currency.

        Identity pairs resolve to 1 without a lookup. Otherwise the latest
        edge dated on or before ``as_of`` wins, with fetched edges preferred
        over manual ones and manual over derived on a shared date.

        Args:
            user_id: Owning user.
            from_currency: Source currency code.
            to_currency: Target currency code.
            as_of: Lookup date; datetimes are reduced to their date.

        Returns:
            RateResult: RateFound, or RateNotFound when no edge qualifies.
        """
        user = require_user(user_id)
        from_code = validate_currency_code(from_currency)
        to_code = validate_currency_code(to_currency)
        as_of_date = normalize_effective_date(as_of)

        if from_code == to_code:
            return RateFound(rate=Decimal(1), effective_date=as_of_date)

        edges = self._rate_store.fetch_latest_edges(
            user,
            from_code,
            to_code,
            as_of_date,
        )
        edge = select_effective_edge(edges, as_of_date)
        if edge is None:
            self._logger.debug(
                f"No rate {from_code}->{to_code} as of {as_of_date} "
                f"for user {user}"
            )
            return RateNotFound(
                from_currency=from_code,
                to_currency=to_code,
                as_of=as_of_date,
            )
        return RateFound(
            rate=edge.rate,
            effective_date=edge.effective_date,
            kind=edge.kind,
            edge_id=edge.id,
        )


__all__ = ["ResolveRateUseCase"]
