"""Tests for per-(user, date) serialization of closure runs."""

import threading
import time
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from src.application.use_cases.generate_closure import GenerateClosureUseCase
from src.domain.models import RateEdge, RateKind
from src.infrastructure.in_memory_repositories import InMemoryRateStore

USER = "user-1"
DAY = date(2024, 1, 1)


class _TrackingRateStore(InMemoryRateStore):
    """Store recording how many closure reads overlap in time."""

    def __init__(self) -> None:
        super().__init__()
        self._counter = threading.Lock()
        self._active = 0
        self.max_active = 0

    def fetch_authoritative_edges(self, user_id, as_of):
        with self._counter:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            time.sleep(0.05)
            return super().fetch_authoritative_edges(user_id, as_of)
        finally:
            with self._counter:
                self._active -= 1


def _seed(store):
    store.upsert_edges(
        [
            RateEdge(
                id="usd-eur",
                user_id=USER,
                from_currency="USD",
                to_currency="EUR",
                rate=Decimal("0.92"),
                effective_date=DAY,
                kind=RateKind.MANUAL,
            ),
            RateEdge(
                id="usd-cny",
                user_id=USER,
                from_currency="USD",
                to_currency="CNY",
                rate=Decimal("7.1"),
                effective_date=DAY,
                kind=RateKind.MANUAL,
            ),
        ]
    )


def test_concurrent_runs_for_same_date_do_not_overlap(registry):
    """Two runs on one (user, date) execute one after the other."""
    store = _TrackingRateStore()
    _seed(store)
    closure = GenerateClosureUseCase(store, registry, logger=MagicMock())
    start = threading.Barrier(2)
    results = []
    errors = []

    def _run():
        start.wait()
        try:
            results.append(closure.execute(USER, DAY))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_run) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert errors == []
    assert store.max_active == 1
    assert sorted(result.created_count for result in results) == [0, 4]
    pairs = [edge.pair for edge in store.fetch_derived_edges(USER, DAY)]
    assert len(pairs) == len(set(pairs)) == 4


def test_closure_lock_is_reentrant_and_blocks_other_threads():
    """The holder may re-enter; another thread waits until release."""
    store = InMemoryRateStore()
    acquired = []

    def _try_acquire(day=DAY):
        lock = store.closure_lock(USER, day)
        got = lock.acquire(timeout=0.05)
        acquired.append(got)
        if got:
            lock.release()

    with store.closure_lock(USER, DAY):
        with store.closure_lock(USER, DAY):
            worker = threading.Thread(target=_try_acquire)
            worker.start()
            worker.join(timeout=5)
            other_date = threading.Thread(
                target=_try_acquire,
                args=(date(2024, 1, 2),),
            )
            other_date.start()
            other_date.join(timeout=5)

    assert acquired == [False, True]
