"""SQLAlchemy-backed currency registry."""

from sqlalchemy import text

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.ports.database import DatabaseEnginePort
from src.domain.models import ActiveCurrencySet, Currency
from src.domain.policies import visible_currencies
from src.domain.services import validate_currency_code, validate_decimal_places
from src.infrastructure.logging.logger import get_app_logger

GLOBAL_OWNER_KEY = ""

SELECT_CURRENCIES_SQL = text(
    """
    SELECT code, owner_key, symbol, name, decimal_places
    FROM currencies
    WHERE owner_key IN ('', :user_id)
    ORDER BY code, owner_key
    """
)

SELECT_ACTIVE_CODES_SQL = text(
    """
    SELECT currency_code
    FROM user_currencies
    WHERE user_id = :user_id AND is_active = 1
    ORDER BY position, currency_code
    """
)

SELECT_BASE_CURRENCY_SQL = text(
    """
    SELECT base_currency_code
    FROM user_settings
    WHERE user_id = :user_id
    """
)

DELETE_CUSTOM_CURRENCY_SQL = text(
    """
    DELETE FROM currencies
    WHERE code = :code AND owner_key = :owner_key
    """
)

INSERT_CURRENCY_SQL = text(
    """
    INSERT INTO currencies (code, owner_key, symbol, name, decimal_places)
    VALUES (:code, :owner_key, :symbol, :name, :decimal_places)
    """
)


class SqlAlchemyCurrencyRegistry(CurrencyRegistryPort):
    """Currency registry backed by the ledger SQL database."""

    def __init__(self, db_port: DatabaseEnginePort, logger=None) -> None:
        """Initialize the repository.

        Args:
            db_port: Port providing access to the ledger engine.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._db_port = db_port
        self._logger = logger or get_app_logger()

    def fetch_visible_currencies(self, user_id: str) -> list[Currency]:
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            rows = conn.execute(
                SELECT_CURRENCIES_SQL,
                {"user_id": user_id},
            ).all()
        return visible_currencies(
            [self._row_to_currency(row) for row in rows],
            user_id,
        )

    def fetch_currency(self, user_id: str, code: str) -> Currency | None:
        for currency in self.fetch_visible_currencies(user_id):
            if currency.code == code:
                return currency
        return None

    def fetch_active_currencies(self, user_id: str) -> ActiveCurrencySet:
        """Return the user's active currencies in display order.

        Codes selected by the user that no longer resolve to a visible
        currency are dropped with a warning.

        Args:
            user_id: Owning user.

        Returns:
            ActiveCurrencySet: Active currencies and base currency code.
        """
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            codes = conn.execute(
                SELECT_ACTIVE_CODES_SQL,
                {"user_id": user_id},
            ).scalars().all()
            base_code = conn.execute(
                SELECT_BASE_CURRENCY_SQL,
                {"user_id": user_id},
            ).scalar_one_or_none()
        visible = {
            currency.code: currency
            for currency in self.fetch_visible_currencies(user_id)
        }
        active = []
        for code in codes:
            currency = visible.get(code)
            if currency is None:
                self._logger.warning(
                    f"Active currency {code} is not visible to user {user_id}"
                )
                continue
            active.append(currency)
        return ActiveCurrencySet(
            user_id=user_id,
            currencies=tuple(active),
            base_currency_code=base_code or "",
        )

    def create_custom_currency(self, user_id: str, currency: Currency) -> Currency:
        code = validate_currency_code(currency.code)
        decimal_places = validate_decimal_places(currency.decimal_places)
        owned = Currency(
            code=code,
            symbol=currency.symbol,
            decimal_places=decimal_places,
            name=currency.name,
            owner_user_id=user_id,
        )
        engine = self._db_port.get_ledger_engine()
        with engine.begin() as conn:
            conn.execute(
                DELETE_CUSTOM_CURRENCY_SQL,
                {"code": code, "owner_key": user_id},
            )
            conn.execute(
                INSERT_CURRENCY_SQL,
                {
                    "code": owned.code,
                    "owner_key": user_id,
                    "symbol": owned.symbol,
                    "name": owned.name,
                    "decimal_places": owned.decimal_places,
                },
            )
        self._logger.info(f"Stored custom currency {code} for user {user_id}")
        return owned

    @staticmethod
    def _row_to_currency(row) -> Currency:
        owner = row.owner_key if row.owner_key != GLOBAL_OWNER_KEY else None
        return Currency(
            code=row.code,
            symbol=row.symbol,
            decimal_places=int(row.decimal_places),
            name=row.name or "",
            owner_user_id=owner,
        )


__all__ = ["SqlAlchemyCurrencyRegistry"]
