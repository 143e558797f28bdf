"""Factory helpers to select the rate store backend."""

import os

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.rate_store import RateStorePort
from src.infrastructure.in_memory_repositories import InMemoryRateStore
from src.infrastructure.logging.logger import get_app_logger
from src.infrastructure.rate_store_repository import SqlAlchemyRateStore


def create_rate_store(
    db_port: DatabaseEnginePort | None,
    logger=None,
    backend: str | None = None,
) -> RateStorePort:
    """Return a rate store implementation based on configuration.

    Args:
        db_port: Port providing access to the ledger engine (SQL backend).
        logger: Optional logger compatible with logging.Logger-like API.
        backend: Optional backend override (sqlalchemy or memory).

    Returns:
        RateStorePort: Concrete store implementation.
    """
    resolved_logger = logger or get_app_logger()
    selected_backend = (
        backend or os.getenv("LEDGER_STORE_BACKEND", "sqlalchemy")
    ).strip().lower()

    if selected_backend == "sqlalchemy":
        if db_port is None:
            raise RuntimeError("SQL rate store requires a database adapter.")
        return SqlAlchemyRateStore(db_port, logger=resolved_logger)

    if selected_backend == "memory":
        resolved_logger.warning(
            "Using the in-memory rate store; edges are not persisted"
        )
        return InMemoryRateStore()

    raise ValueError(
        "Unsupported rate store backend: "
        f"{selected_backend}. Expected sqlalchemy or memory."
    )


__all__ = ["create_rate_store"]
