"""In-memory adapters for the rate store, currency registry and settings.

Edges live in a single id-keyed arena; secondary indexes map the upsert key
to an id and each authoritative id to the derived ids built on it, so
invalidation is a lookup rather than a cascade.
"""

import threading
from dataclasses import replace
from datetime import date, datetime

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.ports.rate_store import RateStorePort
from src.application.ports.user_settings import UserSettingsPort
from src.domain.errors import ValidationError
from src.domain.models import (
    ActiveCurrencySet,
    Currency,
    RateEdge,
    RateKind,
    UserRateSettings,
)
from src.domain.policies import visible_currencies
from src.infrastructure.locks import KeyedLock

_EdgeKey = tuple[str, str, str, date, RateKind]


class InMemoryRateStore(RateStorePort):
    """Rate store kept in process memory."""

    def __init__(self) -> None:
        self._edges: dict[str, RateEdge] = {}
        self._by_key: dict[_EdgeKey, str] = {}
        self._dependents: dict[str, set[str]] = {}
        self._mutex = threading.RLock()
        self._closure_locks = KeyedLock()

    def upsert_edges(self, edges: list[RateEdge]) -> list[RateEdge]:
        for edge in edges:
            if not edge.kind.is_authoritative:
                raise ValidationError(
                    "Derived edges are only written by closure generation"
                )
        stored = []
        with self._mutex:
            for edge in edges:
                existing_id = self._by_key.get(self._key(edge))
                if existing_id is not None:
                    edge = replace(edge, id=existing_id)
                self._put(edge)
                stored.append(edge)
        return stored

    def get_edge(self, user_id: str, edge_id: str) -> RateEdge | None:
        edge = self._edges.get(edge_id)
        if edge is None or edge.user_id != user_id:
            return None
        return edge

    def delete_edge(self, user_id: str, edge_id: str) -> list[RateEdge]:
        with self._mutex:
            if self.get_edge(user_id, edge_id) is None:
                return []
            dependents = self.fetch_dependent_edges(user_id, edge_id)
            for dependent in dependents:
                self._remove(dependent.id)
            self._remove(edge_id)
            self._dependents.pop(edge_id, None)
        return dependents

    def fetch_latest_edges(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        as_of: date,
    ) -> list[RateEdge]:
        candidates = [
            edge
            for edge in list(self._edges.values())
            if edge.user_id == user_id
            and edge.from_currency == from_currency
            and edge.to_currency == to_currency
            and edge.effective_date <= as_of
        ]
        if not candidates:
            return []
        latest = max(edge.effective_date for edge in candidates)
        return [edge for edge in candidates if edge.effective_date == latest]

    def fetch_authoritative_edges(
        self,
        user_id: str,
        as_of: date,
    ) -> list[RateEdge]:
        return sorted(
            (
                edge
                for edge in list(self._edges.values())
                if edge.user_id == user_id
                and edge.kind.is_authoritative
                and edge.effective_date <= as_of
            ),
            key=lambda edge: (edge.pair, edge.effective_date),
        )

    def fetch_derived_edges(
        self,
        user_id: str,
        effective_date: date,
    ) -> list[RateEdge]:
        return sorted(
            (
                edge
                for edge in list(self._edges.values())
                if edge.user_id == user_id
                and edge.kind is RateKind.DERIVED
                and edge.effective_date == effective_date
            ),
            key=lambda edge: edge.pair,
        )

    def fetch_dependent_edges(
        self,
        user_id: str,
        edge_id: str,
    ) -> list[RateEdge]:
        with self._mutex:
            ids = sorted(self._dependents.get(edge_id, ()))
            return [
                self._edges[dependent_id]
                for dependent_id in ids
                if self._edges[dependent_id].user_id == user_id
            ]

    def fetch_derived_dates(self, user_id: str, after: date) -> list[date]:
        return sorted(
            {
                edge.effective_date
                for edge in list(self._edges.values())
                if edge.user_id == user_id
                and edge.kind is RateKind.DERIVED
                and edge.effective_date > after
            }
        )

    def replace_derived_edges(
        self,
        user_id: str,
        effective_date: date,
        edges: list[RateEdge],
    ) -> None:
        with self._mutex:
            for stale in self.fetch_derived_edges(user_id, effective_date):
                self._remove(stale.id)
            for edge in edges:
                self._put(edge)

    def closure_lock(self, user_id: str, effective_date: date):
        return self._closure_locks.get((user_id, effective_date))

    @staticmethod
    def _key(edge: RateEdge) -> _EdgeKey:
        return (
            edge.user_id,
            edge.from_currency,
            edge.to_currency,
            edge.effective_date,
            edge.kind,
        )

    def _put(self, edge: RateEdge) -> None:
        self._edges[edge.id] = edge
        self._by_key[self._key(edge)] = edge.id
        for source_id in edge.derived_from:
            self._dependents.setdefault(source_id, set()).add(edge.id)

    def _remove(self, edge_id: str) -> None:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            return
        self._by_key.pop(self._key(edge), None)
        for source_id in edge.derived_from:
            dependents = self._dependents.get(source_id)
            if dependents is not None:
                dependents.discard(edge_id)
                if not dependents:
                    del self._dependents[source_id]


class InMemoryCurrencyRegistry(CurrencyRegistryPort):
    """Currency registry kept in process memory."""

    def __init__(
        self,
        currencies: list[Currency] | None = None,
        active: dict[str, tuple[list[str], str]] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            currencies: Global and user-owned currency records.
            active: Mapping of user id to (active codes, base code).
        """
        self._currencies = list(currencies or [])
        self._active = dict(active or {})

    def fetch_visible_currencies(self, user_id: str) -> list[Currency]:
        return visible_currencies(self._currencies, user_id)

    def fetch_currency(self, user_id: str, code: str) -> Currency | None:
        for currency in self.fetch_visible_currencies(user_id):
            if currency.code == code:
                return currency
        return None

    def fetch_active_currencies(self, user_id: str) -> ActiveCurrencySet:
        codes, base_code = self._active.get(user_id, ([], ""))
        visible = {
            currency.code: currency
            for currency in self.fetch_visible_currencies(user_id)
        }
        return ActiveCurrencySet(
            user_id=user_id,
            currencies=tuple(visible[code] for code in codes if code in visible),
            base_currency_code=base_code,
        )

    def create_custom_currency(self, user_id: str, currency: Currency) -> Currency:
        owned = replace(currency, owner_user_id=user_id)
        self._currencies = [
            existing
            for existing in self._currencies
            if not (
                existing.code == owned.code
                and existing.owner_user_id == user_id
            )
        ]
        self._currencies.append(owned)
        return owned

    def set_active_currencies(
        self,
        user_id: str,
        codes: list[str],
        base_code: str,
    ) -> None:
        """Replace the user's active currencies and base currency."""
        self._active[user_id] = (list(codes), base_code)


class InMemoryUserSettings(UserSettingsPort):
    """User settings kept in process memory."""

    def __init__(self, settings: list[UserRateSettings] | None = None) -> None:
        self._settings = {item.user_id: item for item in settings or []}

    def fetch_settings(self, user_id: str) -> UserRateSettings | None:
        return self._settings.get(user_id)

    def record_feed_update(self, user_id: str, updated_at: datetime) -> None:
        current = self._settings.get(user_id) or UserRateSettings(
            user_id=user_id,
            base_currency_code=None,
        )
        self._settings[user_id] = replace(current, last_feed_update=updated_at)


__all__ = [
    "InMemoryRateStore",
    "InMemoryCurrencyRegistry",
    "InMemoryUserSettings",
]
