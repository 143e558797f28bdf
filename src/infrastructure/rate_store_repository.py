"""SQLAlchemy-backed store for per-user rate edges."""

from contextlib import contextmanager
from dataclasses import replace
from datetime import date

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.rate_store import RateStorePort
from src.domain.errors import ValidationError
from src.domain.models import RateEdge, RateKind
from src.infrastructure.locks import KeyedLock
from src.infrastructure.logging.logger import get_app_logger
from src.utils.decimal_utils import coerce_decimal

EDGE_COLUMNS = (
    "id, user_id, from_currency, to_currency, rate, effective_date, kind, note"
)

SELECT_EDGE_ID_BY_KEY_SQL = text(
    """
    SELECT id
    FROM rate_edges
    WHERE user_id = :user_id
      AND from_currency = :from_currency
      AND to_currency = :to_currency
      AND effective_date = :effective_date
      AND kind = :kind
    """
)

INSERT_EDGE_SQL = text(
    """
    INSERT INTO rate_edges (
        id, user_id, from_currency, to_currency, rate, effective_date, kind, note
    )
    VALUES (
        :id, :user_id, :from_currency, :to_currency, :rate, :effective_date,
        :kind, :note
    )
    """
)

UPDATE_EDGE_SQL = text(
    """
    UPDATE rate_edges
    SET rate = :rate, note = :note
    WHERE id = :id
    """
)

SELECT_EDGE_SQL = text(
    f"""
    SELECT {EDGE_COLUMNS}
    FROM rate_edges
    WHERE user_id = :user_id AND id = :id
    """
)

SELECT_LATEST_PAIR_EDGES_SQL = text(
    f"""
    SELECT {EDGE_COLUMNS}
    FROM rate_edges
    WHERE user_id = :user_id
      AND from_currency = :from_currency
      AND to_currency = :to_currency
      AND effective_date = (
          SELECT MAX(effective_date)
          FROM rate_edges
          WHERE user_id = :user_id
            AND from_currency = :from_currency
            AND to_currency = :to_currency
            AND effective_date <= :as_of
      )
    """
)

SELECT_AUTHORITATIVE_EDGES_SQL = text(
    f"""
    SELECT {EDGE_COLUMNS}
    FROM rate_edges
    WHERE user_id = :user_id
      AND kind IN ('MANUAL', 'FETCHED')
      AND effective_date <= :as_of
    ORDER BY from_currency, to_currency, effective_date
    """
)

SELECT_DERIVED_EDGES_SQL = text(
    f"""
    SELECT {EDGE_COLUMNS}
    FROM rate_edges
    WHERE user_id = :user_id
      AND kind = 'DERIVED'
      AND effective_date = :effective_date
    ORDER BY from_currency, to_currency
    """
)

SELECT_DEPENDENT_EDGES_SQL = text(
    """
    SELECT DISTINCT e.id, e.user_id, e.from_currency, e.to_currency, e.rate,
           e.effective_date, e.kind, e.note
    FROM rate_edges e
    JOIN rate_edge_sources s ON s.edge_id = e.id
    WHERE e.user_id = :user_id AND s.source_edge_id = :source_edge_id
    """
)

SELECT_DERIVED_DATES_SQL = text(
    """
    SELECT DISTINCT effective_date
    FROM rate_edges
    WHERE user_id = :user_id
      AND kind = 'DERIVED'
      AND effective_date > :after
    ORDER BY effective_date
    """
)

SELECT_SOURCES_SQL = text(
    """
    SELECT edge_id, position, source_edge_id
    FROM rate_edge_sources
    WHERE edge_id IN :edge_ids
    ORDER BY edge_id, position
    """
).bindparams(bindparam("edge_ids", expanding=True))

DELETE_SOURCES_SQL = text(
    "DELETE FROM rate_edge_sources WHERE edge_id IN :edge_ids"
).bindparams(bindparam("edge_ids", expanding=True))

DELETE_EDGES_SQL = text(
    "DELETE FROM rate_edges WHERE user_id = :user_id AND id IN :edge_ids"
).bindparams(bindparam("edge_ids", expanding=True))

INSERT_SOURCE_SQL = text(
    """
    INSERT INTO rate_edge_sources (edge_id, position, source_edge_id)
    VALUES (:edge_id, :position, :source_edge_id)
    """
)

ADVISORY_LOCK_SQL = text("SELECT pg_advisory_lock(hashtext(:lock_key))")
ADVISORY_UNLOCK_SQL = text("SELECT pg_advisory_unlock(hashtext(:lock_key))")

_CLOSURE_LOCKS = KeyedLock()
# Re-entry depth per (user, date); only the thread holding the key's lock
# touches its entry.
_CLOSURE_DEPTH: dict[tuple[str, date], int] = {}


class SqlAlchemyRateStore(RateStorePort):
    """Rate store backed by the ledger SQL database."""

    def __init__(self, db_port: DatabaseEnginePort, logger=None) -> None:
        """Initialize the repository.

        Args:
            db_port: Port providing access to the ledger engine.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._db_port = db_port
        self._logger = logger or get_app_logger()

    def upsert_edges(self, edges: list[RateEdge]) -> list[RateEdge]:
        for edge in edges:
            if not edge.kind.is_authoritative:
                raise ValidationError(
                    "Derived edges are only written by closure generation"
                )
        stored: list[RateEdge] = []
        engine = self._db_port.get_ledger_engine()
        with engine.begin() as conn:
            for edge in edges:
                existing = conn.execute(
                    SELECT_EDGE_ID_BY_KEY_SQL,
                    {
                        "user_id": edge.user_id,
                        "from_currency": edge.from_currency,
                        "to_currency": edge.to_currency,
                        "effective_date": edge.effective_date.isoformat(),
                        "kind": edge.kind.value,
                    },
                ).first()
                if existing:
                    conn.execute(
                        UPDATE_EDGE_SQL,
                        {
                            "id": existing.id,
                            "rate": str(edge.rate),
                            "note": edge.note,
                        },
                    )
                    stored.append(replace(edge, id=existing.id))
                else:
                    conn.execute(INSERT_EDGE_SQL, self._edge_params(edge))
                    stored.append(edge)
        return stored

    def get_edge(self, user_id: str, edge_id: str) -> RateEdge | None:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            row = conn.execute(
                SELECT_EDGE_SQL,
                {"user_id": user_id, "id": edge_id},
            ).first()
            if not row:
                return None
            return self._rows_to_edges(conn, [row])[0]

    def delete_edge(self, user_id: str, edge_id: str) -> list[RateEdge]:
        engine = self._db_port.get_ledger_engine()
        with engine.begin() as conn:
            dependent_rows = conn.execute(
                SELECT_DEPENDENT_EDGES_SQL,
                {"user_id": user_id, "source_edge_id": edge_id},
            ).all()
            dependents = self._rows_to_edges(conn, dependent_rows)
            edge_ids = [edge.id for edge in dependents] + [edge_id]
            conn.execute(DELETE_SOURCES_SQL, {"edge_ids": edge_ids})
            conn.execute(
                DELETE_EDGES_SQL,
                {"user_id": user_id, "edge_ids": edge_ids},
            )
        if dependents:
            self._logger.info(
                f"Deleted {len(dependents)} derived edges built on {edge_id}"
            )
        return dependents

    def fetch_latest_edges(
        self,
        user_id: str,
        from_currency: str,
        to_currency: str,
        as_of: date,
    ) -> list[RateEdge]:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            rows = conn.execute(
                SELECT_LATEST_PAIR_EDGES_SQL,
                {
                    "user_id": user_id,
                    "from_currency": from_currency,
                    "to_currency": to_currency,
                    "as_of": as_of.isoformat(),
                },
            ).all()
            return self._rows_to_edges(conn, rows)

    def fetch_authoritative_edges(
        self,
        user_id: str,
        as_of: date,
    ) -> list[RateEdge]:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            rows = conn.execute(
                SELECT_AUTHORITATIVE_EDGES_SQL,
                {"user_id": user_id, "as_of": as_of.isoformat()},
            ).all()
        return [self._row_to_edge(row, ()) for row in rows]

    def fetch_derived_edges(
        self,
        user_id: str,
        effective_date: date,
    ) -> list[RateEdge]:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            rows = conn.execute(
                SELECT_DERIVED_EDGES_SQL,
                {
                    "user_id": user_id,
                    "effective_date": effective_date.isoformat(),
                },
            ).all()
            return self._rows_to_edges(conn, rows)

    def fetch_dependent_edges(
        self,
        user_id: str,
        edge_id: str,
    ) -> list[RateEdge]:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            rows = conn.execute(
                SELECT_DEPENDENT_EDGES_SQL,
                {"user_id": user_id, "source_edge_id": edge_id},
            ).all()
            return self._rows_to_edges(conn, rows)

    def replace_derived_edges(
        self,
        user_id: str,
        effective_date: date,
        edges: list[RateEdge],
    ) -> None:
        engine = self._db_port.get_ledger_engine()
        with engine.begin() as conn:
            stale_rows = conn.execute(
                SELECT_DERIVED_EDGES_SQL,
                {
                    "user_id": user_id,
                    "effective_date": effective_date.isoformat(),
                },
            ).all()
            stale_ids = [row.id for row in stale_rows]
            if stale_ids:
                conn.execute(DELETE_SOURCES_SQL, {"edge_ids": stale_ids})
                conn.execute(
                    DELETE_EDGES_SQL,
                    {"user_id": user_id, "edge_ids": stale_ids},
                )
            if edges:
                conn.execute(
                    INSERT_EDGE_SQL,
                    [self._edge_params(edge) for edge in edges],
                )
                sources = [
                    {
                        "edge_id": edge.id,
                        "position": position,
                        "source_edge_id": source_id,
                    }
                    for edge in edges
                    for position, source_id in enumerate(edge.derived_from)
                ]
                if sources:
                    conn.execute(INSERT_SOURCE_SQL, sources)

    def fetch_derived_dates(self, user_id: str, after: date) -> list[date]:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            rows = conn.execute(
                SELECT_DERIVED_DATES_SQL,
                {"user_id": user_id, "after": after.isoformat()},
            ).all()
        return [
            date.fromisoformat(str(row.effective_date)[:10]) for row in rows
        ]

    @contextmanager
    def closure_lock(self, user_id: str, effective_date: date):
        """Serialize closure runs for (user, effective_date).

        A process-local re-entrant lock orders threads; on PostgreSQL the
        outermost holder also takes a session-level advisory lock so runs in
        other processes wait for the whole read-compute-replace sequence.
        """
        key = (user_id, effective_date)
        with _CLOSURE_LOCKS.get(key):
            depth = _CLOSURE_DEPTH.get(key, 0)
            _CLOSURE_DEPTH[key] = depth + 1
            try:
                if depth:
                    yield
                else:
                    with self._advisory_lock(user_id, effective_date):
                        yield
            finally:
                if depth:
                    _CLOSURE_DEPTH[key] = depth
                else:
                    _CLOSURE_DEPTH.pop(key, None)

    @contextmanager
    def _advisory_lock(self, user_id: str, effective_date: date):
        engine = self._db_port.get_ledger_engine()
        if engine.dialect.name != "postgresql":
            yield
            return
        params = {"lock_key": self._lock_key(user_id, effective_date)}
        with engine.connect() as conn:
            conn.execute(ADVISORY_LOCK_SQL, params)
            conn.commit()
            try:
                yield
            finally:
                conn.execute(ADVISORY_UNLOCK_SQL, params)
                conn.commit()

    @staticmethod
    def _lock_key(user_id: str, effective_date: date) -> str:
        return f"rate-closure:{user_id}:{effective_date.isoformat()}"

    @staticmethod
    def _edge_params(edge: RateEdge) -> dict[str, str | None]:
        return {
            "id": edge.id,
            "user_id": edge.user_id,
            "from_currency": edge.from_currency,
            "to_currency": edge.to_currency,
            "rate": str(edge.rate),
            "effective_date": edge.effective_date.isoformat(),
            "kind": edge.kind.value,
            "note": edge.note,
        }

    def _rows_to_edges(self, conn: Connection, rows) -> list[RateEdge]:
        derived_ids = [
            row.id for row in rows if row.kind == RateKind.DERIVED.value
        ]
        sources: dict[str, list[str]] = {}
        if derived_ids:
            source_rows = conn.execute(
                SELECT_SOURCES_SQL,
                {"edge_ids": derived_ids},
            ).all()
            for source in source_rows:
                sources.setdefault(source.edge_id, []).append(
                    source.source_edge_id
                )
        return [
            self._row_to_edge(row, tuple(sources.get(row.id, ())))
            for row in rows
        ]

    @staticmethod
    def _row_to_edge(row, derived_from: tuple[str, ...]) -> RateEdge:
        effective_date = row.effective_date
        if not isinstance(effective_date, date):
            effective_date = date.fromisoformat(str(effective_date)[:10])
        return RateEdge(
            id=row.id,
            user_id=row.user_id,
            from_currency=row.from_currency,
            to_currency=row.to_currency,
            rate=coerce_decimal(row.rate, allow_none=False),
            effective_date=effective_date,
            kind=RateKind(row.kind),
            derived_from=derived_from,
            note=row.note,
        )


__all__ = ["SqlAlchemyRateStore"]
