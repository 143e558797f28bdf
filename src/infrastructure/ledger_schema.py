"""DDL for the ledger exchange-rate tables.

Rates are stored as decimal strings and dates as ISO strings so that SQLite
and PostgreSQL compare and round-trip them identically.
"""

from sqlalchemy.engine import Engine

CREATE_CURRENCIES_SQL = """
CREATE TABLE IF NOT EXISTS currencies (
    code TEXT NOT NULL,
    owner_key TEXT NOT NULL DEFAULT '',
    symbol TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    decimal_places INTEGER NOT NULL,
    PRIMARY KEY (code, owner_key)
)
"""

CREATE_USER_CURRENCIES_SQL = """
CREATE TABLE IF NOT EXISTS user_currencies (
    user_id TEXT NOT NULL,
    currency_code TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    PRIMARY KEY (user_id, currency_code)
)
"""

CREATE_USER_SETTINGS_SQL = """
CREATE TABLE IF NOT EXISTS user_settings (
    user_id TEXT PRIMARY KEY,
    base_currency_code TEXT,
    auto_update_rates INTEGER NOT NULL DEFAULT 0,
    last_feed_update TEXT
)
"""

CREATE_RATE_EDGES_SQL = """
CREATE TABLE IF NOT EXISTS rate_edges (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    from_currency TEXT NOT NULL,
    to_currency TEXT NOT NULL,
    rate TEXT NOT NULL,
    effective_date TEXT NOT NULL,
    kind TEXT NOT NULL,
    note TEXT,
    UNIQUE (user_id, from_currency, to_currency, effective_date, kind)
)
"""

CREATE_RATE_EDGES_PAIR_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS ix_rate_edges_pair
ON rate_edges (user_id, from_currency, to_currency, effective_date)
"""

CREATE_RATE_EDGES_DATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS ix_rate_edges_date
ON rate_edges (user_id, effective_date)
"""

CREATE_RATE_EDGE_SOURCES_SQL = """
CREATE TABLE IF NOT EXISTS rate_edge_sources (
    edge_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    source_edge_id TEXT NOT NULL,
    PRIMARY KEY (edge_id, position)
)
"""

CREATE_RATE_EDGE_SOURCES_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS ix_rate_edge_sources_source
ON rate_edge_sources (source_edge_id)
"""

SCHEMA_STATEMENTS = (
    CREATE_CURRENCIES_SQL,
    CREATE_USER_CURRENCIES_SQL,
    CREATE_USER_SETTINGS_SQL,
    CREATE_RATE_EDGES_SQL,
    CREATE_RATE_EDGES_PAIR_INDEX_SQL,
    CREATE_RATE_EDGES_DATE_INDEX_SQL,
    CREATE_RATE_EDGE_SOURCES_SQL,
    CREATE_RATE_EDGE_SOURCES_INDEX_SQL,
)


def ensure_schema(engine: Engine) -> None:
    """Create the ledger tables and indexes if they do not exist.

    Args:
        engine: SQLAlchemy engine for the ledger database.
    """
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.exec_driver_sql(statement)


__all__ = ["SCHEMA_STATEMENTS", "ensure_schema"]
