"""Use case materializing the derived rate edges of a user for one date.

The run happens under the store's closure lock for (user, date):

* read the authoritative edges effective on the date;
* compute reverses and shortest transitive paths for the active currencies;
* compare with the derived edges already stored, pair by pair;
* replace the stored derived edges with the fresh set in one transaction.
"""

from collections.abc import Iterable
from datetime import date, datetime
from uuid import uuid4

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.ports.rate_store import RateStorePort
from src.domain.models import ClosureResult, RateEdge, RateKind
from src.domain.services import (
    DerivedRate,
    compute_closure,
    normalize_effective_date,
    require_user,
)
from src.infrastructure.logging.logger import get_app_logger


class GenerateClosureUseCase:
    """Regenerate derived edges so active currencies are mutually convertible."""

    def __init__(
        self,
        rate_store: RateStorePort,
        currency_registry: CurrencyRegistryPort,
        logger=None,
    ) -> None:
        """Initialize the use case.

        Args:
            rate_store: Port providing access to the user's rate edges.
            currency_registry: Port providing the user's active currencies.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._rate_store = rate_store
        self._currency_registry = currency_registry
        self._logger = logger or get_app_logger()

    def execute(
        self,
        user_id: str,
        effective_date: date | datetime | str,
    ) -> ClosureResult:
        """Regenerate the closure for one user and date.

        Args:
            user_id: Owning user.
            effective_date: Date whose derived edges are rebuilt.

        Returns:
            ClosureResult: Created, updated and deleted counts plus the active
            pairs left without a path.
        """
        user = require_user(user_id)
        day = normalize_effective_date(effective_date)
        active = self._currency_registry.fetch_active_currencies(user)

        with self._rate_store.closure_lock(user, day):
            authoritative = self._rate_store.fetch_authoritative_edges(user, day)
            plan = compute_closure(authoritative, active.codes, day)
            previous = {
                edge.pair: edge
                for edge in self._rate_store.fetch_derived_edges(user, day)
            }
            fresh = [
                self._to_edge(user, day, derived, previous.get(derived.pair))
                for derived in plan.derived
            ]
            created, updated, deleted = self._diff(previous, fresh)
            self._rate_store.replace_derived_edges(user, day, fresh)

        if plan.unresolved_pairs:
            missing = ", ".join(f"{a}->{b}" for a, b in plan.unresolved_pairs)
            self._logger.warning(
                f"Closure for {user} on {day} left pairs unresolved: {missing}"
            )
        self._logger.info(
            f"Closure for {user} on {day}: created={created}, "
            f"updated={updated}, deleted={deleted}, derived={len(fresh)}"
        )
        return ClosureResult(
            user_id=user,
            effective_date=day,
            created_count=created,
            updated_count=updated,
            deleted_count=deleted,
            unresolved_pairs=list(plan.unresolved_pairs),
            derived_count=len(fresh),
        )

    def execute_many(
        self,
        user_id: str,
        effective_dates: Iterable[date],
    ) -> list[ClosureResult]:
        """Regenerate the closure for several dates in chronological order."""
        return [
            self.execute(user_id, day)
            for day in sorted(set(effective_dates))
        ]

    def execute_forward(
        self,
        user_id: str,
        effective_date: date,
        extra_dates: Iterable[date] = (),
    ) -> list[ClosureResult]:
        """Regenerate a date, extra dates and every later materialized date.

        An authoritative change on effective_date applies forward, so every
        later date that already holds derived edges is rebuilt as well.

        Args:
            user_id: Owning user.
            effective_date: Date of the authoritative change.
            extra_dates: Further dates to rebuild, such as dependants' dates.

        Returns:
            list[ClosureResult]: One result per regenerated date, ascending.
        """
        later = self._rate_store.fetch_derived_dates(user_id, effective_date)
        return self.execute_many(
            user_id,
            [effective_date, *extra_dates, *later],
        )

    @staticmethod
    def _to_edge(
        user_id: str,
        day: date,
        derived: DerivedRate,
        existing: RateEdge | None,
    ) -> RateEdge:
        return RateEdge(
            id=existing.id if existing else str(uuid4()),
            user_id=user_id,
            from_currency=derived.from_currency,
            to_currency=derived.to_currency,
            rate=derived.rate,
            effective_date=day,
            kind=RateKind.DERIVED,
            derived_from=derived.derived_from,
            note=derived.describe(),
        )

    @staticmethod
    def _diff(
        previous: dict[tuple[str, str], RateEdge],
        fresh: list[RateEdge],
    ) -> tuple[int, int, int]:
        fresh_pairs = {edge.pair for edge in fresh}
        created = 0
        updated = 0
        for edge in fresh:
            old = previous.get(edge.pair)
            if old is None:
                created += 1
            elif old.rate != edge.rate or old.derived_from != edge.derived_from:
                updated += 1
        deleted = sum(1 for pair in previous if pair not in fresh_pairs)
        return created, updated, deleted


__all__ = ["GenerateClosureUseCase"]
