"""Domain models for exchange-rate edges and resolution results."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class RateKind(str, Enum):
    """Origin of a rate edge."""

    MANUAL = "MANUAL"
    FETCHED = "FETCHED"
    DERIVED = "DERIVED"

    @property
    def is_authoritative(self) -> bool:
        """Return True for user-entered or feed-sourced edges."""
        return self is not RateKind.DERIVED

    @property
    def precedence(self) -> int:
        """Return the tie-break rank on a shared date (lower wins)."""
        return _KIND_PRECEDENCE[self]


_KIND_PRECEDENCE = {
    RateKind.FETCHED: 0,
    RateKind.MANUAL: 1,
    RateKind.DERIVED: 2,
}


@dataclass(frozen=True)
class RateEdge:
    """Directed conversion rate owned by one user.

    Attributes:
        id: Stable identifier, preserved across upserts.
        user_id: Owning user.
        from_currency: Source currency code.
        to_currency: Target currency code.
        rate: Units of ``to_currency`` per unit of ``from_currency``.
        effective_date: Calendar date from which the rate applies.
        kind: Origin of the edge.
        derived_from: Ordered authoritative edge ids composing a derived path.
        note: Optional free-text note.
    """

    id: str
    user_id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    effective_date: date
    kind: RateKind
    derived_from: tuple[str, ...] = ()
    note: str | None = None

    @property
    def pair(self) -> tuple[str, str]:
        """Return the ordered (from, to) currency pair."""
        return (self.from_currency, self.to_currency)


@dataclass(frozen=True)
class RateFound:
    """Successful resolution of a conversion factor."""

    rate: Decimal
    effective_date: date
    kind: RateKind | None = None
    edge_id: str | None = None

    @property
    def is_found(self) -> bool:
        return True


@dataclass(frozen=True)
class RateNotFound:
    """No edge qualifies for the requested pair and date."""

    from_currency: str
    to_currency: str
    as_of: date

    @property
    def is_found(self) -> bool:
        return False


RateResult = RateFound | RateNotFound


@dataclass(frozen=True)
class ClosureResult:
    """Outcome of regenerating derived edges for one date.

    Attributes:
        user_id: User whose graph was regenerated.
        effective_date: Date of the derived edges.
        created_count: Pairs derived now but not before.
        updated_count: Pairs whose rate or sources changed.
        deleted_count: Pairs derived before but no longer.
        unresolved_pairs: Active pairs left without any path.
        derived_count: Number of derived edges after the run.
    """

    user_id: str
    effective_date: date
    created_count: int
    updated_count: int
    deleted_count: int
    unresolved_pairs: list[tuple[str, str]] = field(default_factory=list)
    derived_count: int = 0


@dataclass(frozen=True)
class RecordRateResult:
    """Outcome of writing or deleting an authoritative edge."""

    edge: RateEdge
    closures: list[ClosureResult]
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeedQuote:
    """Rates published by an external feed for one base currency and date."""

    base_currency: str
    effective_date: date
    rates: dict[str, Decimal]
    source: str = ""


@dataclass(frozen=True)
class FeedRefreshResult:
    """Outcome of pulling rates from the external feed."""

    base_currency: str | None
    updated_count: int
    skipped_currencies: list[str] = field(default_factory=list)
    effective_date: date | None = None
    source: str = ""
    skipped: bool = False
    skip_reason: str | None = None
    closure: ClosureResult | None = None


@dataclass(frozen=True)
class FeedUpdateStatus:
    """Throttle state of the external feed for a user."""

    enabled: bool
    last_update: datetime | None
    needs_update: bool
    hours_since_last_update: float | None


__all__ = [
    "RateKind",
    "RateEdge",
    "RateFound",
    "RateNotFound",
    "RateResult",
    "ClosureResult",
    "RecordRateResult",
    "FeedQuote",
    "FeedRefreshResult",
    "FeedUpdateStatus",
]
