"""SQLAlchemy-backed per-user feed settings."""

from datetime import datetime

from sqlalchemy import text

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.user_settings import UserSettingsPort
from src.domain.models import UserRateSettings

SELECT_SETTINGS_SQL = text(
    """
    SELECT user_id, base_currency_code, auto_update_rates, last_feed_update
    FROM user_settings
    WHERE user_id = :user_id
    """
)

UPDATE_FEED_TIMESTAMP_SQL = text(
    """
    UPDATE user_settings
    SET last_feed_update = :updated_at
    WHERE user_id = :user_id
    """
)

INSERT_SETTINGS_SQL = text(
    """
    INSERT INTO user_settings (user_id, last_feed_update)
    VALUES (:user_id, :updated_at)
    """
)


class SqlAlchemyUserSettings(UserSettingsPort):
    """User settings backed by the ledger SQL database."""

    def __init__(self, db_port: DatabaseEnginePort) -> None:
        self._db_port = db_port

    def fetch_settings(self, user_id: str) -> UserRateSettings | None:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            row = conn.execute(
                SELECT_SETTINGS_SQL,
                {"user_id": user_id},
            ).first()
        if not row:
            return None
        last_update = row.last_feed_update
        if last_update is not None and not isinstance(last_update, datetime):
            last_update = datetime.fromisoformat(str(last_update))
        return UserRateSettings(
            user_id=row.user_id,
            base_currency_code=row.base_currency_code,
            auto_update_enabled=bool(row.auto_update_rates),
            last_feed_update=last_update,
        )

    def record_feed_update(self, user_id: str, updated_at: datetime) -> None:
        params = {"user_id": user_id, "updated_at": updated_at.isoformat()}
        engine = self._db_port.get_ledger_engine()
        with engine.begin() as conn:
            result = conn.execute(UPDATE_FEED_TIMESTAMP_SQL, params)
            if result.rowcount == 0:
                conn.execute(INSERT_SETTINGS_SQL, params)


__all__ = ["SqlAlchemyUserSettings"]
