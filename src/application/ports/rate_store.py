"""Application port for the time-versioned rate edge store."""

from contextlib import AbstractContextManager
from datetime import date
from typing import Protocol

from src.domain.models import RateEdge


class RateStorePort(Protocol):
    """Port exposing per-user rate edges.

    Authoritative edges are written through ``upsert_edges`` and
    ``delete_edge``; derived edges are only ever written through
    ``replace_derived_edges``.
    """

    def upsert_edges(self, edges: list[RateEdge]) -> list[RateEdge]:
        """Insert or update authoritative edges in one transaction.

        Edges are keyed by (user, from, to, effective_date, kind). When a key
        already exists its id is kept and the rate and note are overwritten.

        Returns:
            list[RateEdge]: Stored edges, in input order, with their final ids.
        """

    def get_edge(self, user_id: str, edge_id: str) -> RateEdge | None:
        """Return one edge by id."""

    def delete_edge(self, user_id: str, edge_id: str) -> list[RateEdge]:
        """Delete an authoritative edge and every derived edge built on it.

        Returns:
            list[RateEdge]: The derived edges removed with it.
        """

    def fetch_latest_edges(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        as_of: date,
    ) -> list[RateEdge]:
        """Return the edges of a pair sharing the latest date not after as_of."""

    def fetch_authoritative_edges(
        self,
        user_id: str,
        as_of: date,
    ) -> list[RateEdge]:
        """Return all authoritative edges effective on or before as_of."""

    def fetch_derived_edges(
        self,
        user_id: str,
        effective_date: date,
    ) -> list[RateEdge]:
        """Return the derived edges materialized for one date."""

    def fetch_dependent_edges(
        self,
        user_id: str,
        edge_id: str,
    ) -> list[RateEdge]:
        """Return derived edges whose derived_from includes edge_id."""

    def fetch_derived_dates(
        self,
        user_id: str,
        after: date,
    ) -> list[date]:
        """Return the dates later than after holding derived edges, ascending."""

    def replace_derived_edges(
        self,
        user_id: str,
        effective_date: date,
        edges: list[RateEdge],
    ) -> None:
        """Atomically replace all derived edges of (user, effective_date)."""

    def closure_lock(
        self,
        user_id: str,
        effective_date: date,
    ) -> AbstractContextManager:
        """Return a lock serializing closure runs for (user, effective_date).

        The lock is re-entrant for the holding thread and covers the whole
        read-compute-replace sequence of a run.
        """


__all__ = ["RateStorePort"]
