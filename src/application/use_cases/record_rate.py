"""Use case writing and deleting authoritative rate edges.

Every write invalidates the closure of the edited date, of every date that
holds derived edges built on the edited edge and of every later date holding
derived edges; those dates are regenerated before the call returns.
"""

from collections.abc import Callable
from datetime import date, datetime, timezone
from uuid import uuid4

from src.application.ports.rate_store import RateStorePort
from src.application.use_cases.generate_closure import GenerateClosureUseCase
from src.domain.errors import RateEdgeNotFoundError, ValidationError
from src.domain.models import RateEdge, RateKind, RecordRateResult
from src.domain.services import (
    check_reverse_consistency,
    normalize_effective_date,
    require_user,
    select_effective_edge,
    validate_currency_pair,
    validate_not_future,
    validate_note,
    validate_rate,
)
from src.infrastructure.logging.logger import get_app_logger

AUTHORITATIVE_KINDS = (RateKind.FETCHED, RateKind.MANUAL)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordRateUseCase:
    """Create, update and delete authoritative edges with invalidation."""

    def __init__(
        self,
        rate_store: RateStorePort,
        closure: GenerateClosureUseCase,
        logger=None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the use case.

        Args:
            rate_store: Port providing access to the user's rate edges.
            closure: Use case regenerating derived edges.
            logger: Optional logger compatible with logging.Logger-like API.
            clock: Optional callable returning the current time.
        """
        self._rate_store = rate_store
        self._closure = closure
        self._logger = logger or get_app_logger()
        self._clock = clock or _utc_now

    def record(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        rate,
        effective_date: date | datetime | str,
        kind: RateKind = RateKind.MANUAL,
        note: str | None = None,
    ) -> RecordRateResult:
        """Upsert an authoritative edge and regenerate affected closures.

        Args:
            user_id: Owning user.
            from_currency: Source currency code.
            to_currency: Target currency code.
            rate: Units of to_currency per unit of from_currency.
            effective_date: Date from which the rate applies.
            kind: MANUAL for user input, FETCHED for feed rates.
            note: Optional free-text note.

        Returns:
            RecordRateResult: Stored edge, regenerated closures and any
            reverse-consistency warnings.

        Raises:
            ValidationError: If any input is rejected; nothing is written.
        """
        user = require_user(user_id)
        from_code, to_code = validate_currency_pair(from_currency, to_currency)
        value = validate_rate(rate)
        day = normalize_effective_date(effective_date)
        cleaned_note = validate_note(note)
        kind = RateKind(kind)
        if not kind.is_authoritative:
            raise ValidationError("Derived edges cannot be recorded directly")
        if kind is RateKind.MANUAL:
            validate_not_future(day, self._clock().date())

        reverse = select_effective_edge(
            self._rate_store.fetch_latest_edges(user, to_code, from_code, day),
            day,
            kinds=AUTHORITATIVE_KINDS,
        )
        warnings = check_reverse_consistency(
            value,
            reverse.rate if reverse else None,
            (from_code, to_code),
            self._logger,
        )

        candidate = RateEdge(
            id=str(uuid4()),
            user_id=user,
            from_currency=from_code,
            to_currency=to_code,
            rate=value,
            effective_date=day,
            kind=kind,
            note=cleaned_note,
        )
        with self._rate_store.closure_lock(user, day):
            stored = self._rate_store.upsert_edges([candidate])[0]
            dependents = self._rate_store.fetch_dependent_edges(user, stored.id)
            closures = self._closure.execute_forward(
                user,
                day,
                [edge.effective_date for edge in dependents],
            )

        self._logger.info(
            f"Recorded {kind.value} rate {from_code}->{to_code}={value} "
            f"on {day} for user {user}"
        )
        return RecordRateResult(edge=stored, closures=closures, warnings=warnings)

    def delete(self, user_id: str, edge_id: str) -> RecordRateResult:
        """Delete an authoritative edge and regenerate affected closures.

        Derived edges built on the deleted edge are removed in the same
        transaction, then every date they covered is regenerated.

        Args:
            user_id: Owning user.
            edge_id: Identifier of the authoritative edge.

        Returns:
            RecordRateResult: The deleted edge and regenerated closures.

        Raises:
            RateEdgeNotFoundError: If no authoritative edge has that id.
        """
        user = require_user(user_id)
        edge = self._rate_store.get_edge(user, edge_id)
        if edge is None or not edge.kind.is_authoritative:
            raise RateEdgeNotFoundError(f"Rate edge not found: {edge_id}")

        with self._rate_store.closure_lock(user, edge.effective_date):
            dependents = self._rate_store.delete_edge(user, edge.id)
            closures = self._closure.execute_forward(
                user,
                edge.effective_date,
                [dependent.effective_date for dependent in dependents],
            )

        self._logger.info(
            f"Deleted {edge.kind.value} rate {edge.from_currency}->"
            f"{edge.to_currency} on {edge.effective_date} for user {user}"
        )
        return RecordRateResult(edge=edge, closures=closures)


__all__ = ["RecordRateUseCase", "AUTHORITATIVE_KINDS"]
