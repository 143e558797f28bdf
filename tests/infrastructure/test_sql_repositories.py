"""Tests for the SQLAlchemy repositories against in-memory SQLite."""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from src.application.use_cases.rate_engine import RateEngine
from src.domain.errors import ValidationError
from src.domain.models import Currency, RateEdge, RateKind
from src.infrastructure.currency_registry_repository import (
    SqlAlchemyCurrencyRegistry,
)
from src.infrastructure.db import SqlAlchemyDatabaseEngineAdapter
from src.infrastructure.ledger_schema import ensure_schema
from src.infrastructure.rate_store_repository import SqlAlchemyRateStore
from src.infrastructure.user_settings_repository import SqlAlchemyUserSettings

USER = "user-1"
DAY = date(2024, 1, 1)


@pytest.fixture
def db_port():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    ensure_schema(engine)
    with engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO currencies (code, owner_key, symbol, name, decimal_places) "
                "VALUES (:code, :owner_key, :symbol, :name, :decimal_places)"
            ),
            [
                {"code": "USD", "owner_key": "", "symbol": "$", "name": "US Dollar", "decimal_places": 2},
                {"code": "EUR", "owner_key": "", "symbol": "€", "name": "Euro", "decimal_places": 2},
                {"code": "CNY", "owner_key": "", "symbol": "¥", "name": "Yuan", "decimal_places": 2},
                {"code": "XAU", "owner_key": "other", "symbol": "Au", "name": "Gold", "decimal_places": 4},
            ],
        )
        conn.execute(
            text(
                "INSERT INTO user_currencies (user_id, currency_code, position, is_active) "
                "VALUES (:user_id, :code, :position, :is_active)"
            ),
            [
                {"user_id": USER, "code": "USD", "position": 0, "is_active": 1},
                {"user_id": USER, "code": "EUR", "position": 1, "is_active": 1},
                {"user_id": USER, "code": "CNY", "position": 2, "is_active": 1},
                {"user_id": USER, "code": "XAU", "position": 3, "is_active": 1},
            ],
        )
        conn.execute(
            text(
                "INSERT INTO user_settings (user_id, base_currency_code, auto_update_rates) "
                "VALUES (:user_id, 'USD', 1)"
            ),
            {"user_id": USER},
        )
    return SqlAlchemyDatabaseEngineAdapter(engine)


def _edge(edge_id, from_code, to_code, rate, kind=RateKind.MANUAL, day=DAY):
    return RateEdge(
        id=edge_id,
        user_id=USER,
        from_currency=from_code,
        to_currency=to_code,
        rate=Decimal(rate),
        effective_date=day,
        kind=kind,
    )


def test_ensure_schema_is_idempotent(db_port):
    """Running the DDL twice is harmless."""
    ensure_schema(db_port.get_ledger_engine())


def test_upsert_keeps_existing_id(db_port):
    """Upserts keyed by pair, date and kind keep the original id."""
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())
    store.upsert_edges([_edge("e1", "USD", "EUR", "0.9")])

    stored = store.upsert_edges([_edge("e2", "USD", "EUR", "0.8")])

    assert stored[0].id == "e1"
    edge = store.get_edge(USER, "e1")
    assert edge.rate == Decimal("0.8")
    assert edge.effective_date == DAY
    assert store.get_edge(USER, "e2") is None
    assert store.get_edge("someone-else", "e1") is None


def test_upsert_rejects_derived_edges(db_port):
    """Derived edges are written only through closure replacement."""
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())

    with pytest.raises(ValidationError):
        store.upsert_edges([_edge("d1", "USD", "EUR", "1", kind=RateKind.DERIVED)])


def test_latest_edges_and_authoritative_reads(db_port):
    """Pair reads return the latest date only; authoritative reads skip derived."""
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())
    store.upsert_edges(
        [
            _edge("old", "USD", "EUR", "0.5", day=date(2023, 12, 1)),
            _edge("m", "USD", "EUR", "0.8"),
            _edge("f", "USD", "EUR", "0.9", kind=RateKind.FETCHED),
            _edge("future", "USD", "EUR", "0.1", day=date(2024, 2, 1)),
        ]
    )

    latest = store.fetch_latest_edges(USER, "USD", "EUR", DAY)
    authoritative = store.fetch_authoritative_edges(USER, DAY)

    assert sorted(edge.id for edge in latest) == ["f", "m"]
    assert sorted(edge.id for edge in authoritative) == ["f", "m", "old"]
    assert store.fetch_latest_edges(USER, "EUR", "USD", DAY) == []


def test_replace_and_delete_track_dependants(db_port):
    """Derived edges keep ordered sources and are removed with them."""
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())
    store.upsert_edges(
        [_edge("a", "USD", "EUR", "0.9"), _edge("b", "USD", "CNY", "7")]
    )
    derived = RateEdge(
        id="d1",
        user_id=USER,
        from_currency="EUR",
        to_currency="CNY",
        rate=Decimal("7.77777777777778"),
        effective_date=DAY,
        kind=RateKind.DERIVED,
        derived_from=("a", "b"),
        note="Transitive via EUR->USD->CNY",
    )
    store.replace_derived_edges(USER, DAY, [derived])

    assert store.fetch_derived_edges(USER, DAY) == [derived]
    assert [edge.id for edge in store.fetch_dependent_edges(USER, "b")] == ["d1"]

    store.replace_derived_edges(USER, DAY, [])
    assert store.fetch_derived_edges(USER, DAY) == []

    store.replace_derived_edges(USER, DAY, [derived])
    removed = store.delete_edge(USER, "a")

    assert [edge.id for edge in removed] == ["d1"]
    assert store.get_edge(USER, "a") is None
    assert store.fetch_derived_edges(USER, DAY) == []
    assert store.fetch_dependent_edges(USER, "b") == []


def _derived(edge_id, from_code, to_code, day=DAY, sources=("a", "b")):
    return RateEdge(
        id=edge_id,
        user_id=USER,
        from_currency=from_code,
        to_currency=to_code,
        rate=Decimal("7.77777777777778"),
        effective_date=day,
        kind=RateKind.DERIVED,
        derived_from=sources,
    )


def test_failed_replace_keeps_previous_derived_edges(db_port):
    """A replace that fails midway rolls back to the previous derived set."""
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())
    store.upsert_edges(
        [_edge("a", "USD", "EUR", "0.9"), _edge("b", "USD", "CNY", "7")]
    )
    previous = _derived("d1", "EUR", "CNY")
    store.replace_derived_edges(USER, DAY, [previous])
    clashing = [
        _derived("dup", "CNY", "EUR"),
        replace(_derived("dup", "EUR", "USD"), derived_from=("a",)),
    ]

    with pytest.raises(IntegrityError):
        store.replace_derived_edges(USER, DAY, clashing)

    assert store.fetch_derived_edges(USER, DAY) == [previous]
    assert [edge.id for edge in store.fetch_dependent_edges(USER, "b")] == ["d1"]


def test_fetch_derived_dates_lists_later_dates(db_port):
    """Only dates after the given one holding derived edges are returned."""
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())
    store.upsert_edges(
        [_edge("a", "USD", "EUR", "0.9"), _edge("b", "USD", "CNY", "7")]
    )
    later = date(2024, 1, 10)
    store.replace_derived_edges(USER, DAY, [_derived("d1", "EUR", "CNY")])
    store.replace_derived_edges(
        USER, later, [_derived("d2", "EUR", "CNY", day=later)]
    )

    assert store.fetch_derived_dates(USER, DAY) == [later]
    assert store.fetch_derived_dates(USER, date(2023, 12, 31)) == [DAY, later]
    assert store.fetch_derived_dates(USER, later) == []
    assert store.fetch_derived_dates("other", date(2023, 12, 31)) == []


def _mock_db_port(dialect):
    engine = MagicMock()
    engine.dialect.name = dialect
    db_port = MagicMock()
    db_port.get_ledger_engine.return_value = engine
    return db_port, engine


def _statements(conn):
    return [str(call.args[0]) for call in conn.execute.call_args_list]


def test_closure_lock_holds_session_advisory_lock_on_postgresql():
    """The outermost holder keeps a session advisory lock for the whole run."""
    db_port, engine = _mock_db_port("postgresql")
    conn = engine.connect.return_value.__enter__.return_value
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())

    with store.closure_lock(USER, DAY):
        with store.closure_lock(USER, DAY):
            assert _statements(conn) == [
                "SELECT pg_advisory_lock(hashtext(:lock_key))"
            ]

    assert _statements(conn) == [
        "SELECT pg_advisory_lock(hashtext(:lock_key))",
        "SELECT pg_advisory_unlock(hashtext(:lock_key))",
    ]
    assert conn.execute.call_args_list[0].args[1] == {
        "lock_key": "rate-closure:user-1:2024-01-01"
    }
    engine.connect.assert_called_once()


def test_closure_lock_releases_advisory_lock_on_error():
    """The advisory lock is released when the run raises."""
    db_port, engine = _mock_db_port("postgresql")
    conn = engine.connect.return_value.__enter__.return_value
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())

    with pytest.raises(RuntimeError):
        with store.closure_lock(USER, DAY):
            raise RuntimeError("boom")

    assert _statements(conn)[-1] == (
        "SELECT pg_advisory_unlock(hashtext(:lock_key))"
    )
    with store.closure_lock(USER, DAY):
        pass
    assert engine.connect.call_count == 2


def test_closure_lock_skips_advisory_lock_on_sqlite():
    """Other dialects rely on the process-local lock only."""
    db_port, engine = _mock_db_port("sqlite")
    store = SqlAlchemyRateStore(db_port, logger=MagicMock())

    with store.closure_lock(USER, DAY):
        pass

    engine.connect.assert_not_called()


def test_currency_registry_reads_active_set_and_shadows(db_port):
    """Active currencies come back in order with other users' records hidden."""
    logger = MagicMock()
    registry = SqlAlchemyCurrencyRegistry(db_port, logger=logger)

    active = registry.fetch_active_currencies(USER)

    assert active.codes == ("USD", "EUR", "CNY")
    assert active.base_currency_code == "USD"
    logger.warning.assert_called_once()

    registry.create_custom_currency(
        USER,
        Currency(code="usd", symbol="US$", decimal_places=4),
    )
    assert registry.fetch_currency(USER, "USD").symbol == "US$"
    assert registry.fetch_currency("other", "USD").symbol == "$"
    assert registry.fetch_currency("other", "XAU").is_custom


def test_user_settings_round_trip(db_port):
    """Feed timestamps persist for existing and new users."""
    settings = SqlAlchemyUserSettings(db_port)
    stamp = datetime(2024, 1, 2, 3, 4, 5)

    settings.record_feed_update(USER, stamp)
    settings.record_feed_update("new-user", stamp)

    stored = settings.fetch_settings(USER)
    assert stored.auto_update_enabled
    assert stored.base_currency_code == "USD"
    assert stored.last_feed_update == stamp
    assert settings.fetch_settings("new-user").last_feed_update == stamp
    assert settings.fetch_settings("nobody") is None


def test_engine_scenario_on_sql_backend(db_port):
    """The USD/EUR/CNY scenario behaves the same on SQLite."""
    logger = MagicMock()
    engine = RateEngine(
        rate_store=SqlAlchemyRateStore(db_port, logger=logger),
        currency_registry=SqlAlchemyCurrencyRegistry(db_port, logger=logger),
        logger=logger,
        clock=lambda: datetime(2024, 6, 1),
    )
    engine.record_rate(USER, "USD", "EUR", "0.92", DAY)
    cny = engine.record_rate(USER, "USD", "CNY", "7.1", DAY).edge

    rate = engine.resolve(USER, "EUR", "CNY", DAY).rate
    assert abs(rate - Decimal("7.7174")) < Decimal("0.0001")
    repeat = engine.generate_closure(USER, DAY)
    assert (repeat.created_count, repeat.updated_count, repeat.deleted_count) == (0, 0, 0)

    engine.delete_rate(USER, cny.id)

    assert not engine.resolve(USER, "EUR", "CNY", DAY).is_found
    assert [gap.pair for gap in engine.find_gaps(USER, DAY)] == [("CNY", "USD")]
