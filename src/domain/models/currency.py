"""Domain models for currencies and user currency selections."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Currency:
    """Currency record visible to a user.

    Attributes:
        code: Uppercase identifier (e.g., EUR).
        symbol: Display symbol.
        decimal_places: Precision used when rounding amounts (0-10).
        name: Human-readable name.
        owner_user_id: Owning user for custom currencies, None for globals.
    """

    code: str
    symbol: str
    decimal_places: int
    name: str = ""
    owner_user_id: str | None = None

    @property
    def is_custom(self) -> bool:
        """Return True when the currency is owned by a user."""
        return self.owner_user_id is not None


@dataclass(frozen=True)
class ActiveCurrencySet:
    """Ordered currencies a user opted into, with one base currency."""

    user_id: str
    currencies: tuple[Currency, ...]
    base_currency_code: str

    @property
    def codes(self) -> tuple[str, ...]:
        """Return the active currency codes in display order."""
        return tuple(currency.code for currency in self.currencies)

    @property
    def base_currency(self) -> Currency | None:
        """Return the base currency record when it is active."""
        return self.get(self.base_currency_code)

    def get(self, code: str) -> Currency | None:
        """Return the active currency with the given code."""
        for currency in self.currencies:
            if currency.code == code:
                return currency
        return None


@dataclass(frozen=True)
class UserRateSettings:
    """Per-user settings driving external feed refreshes."""

    user_id: str
    base_currency_code: str | None
    auto_update_enabled: bool = False
    last_feed_update: datetime | None = None


@dataclass(frozen=True)
class CurrencyGap:
    """Active currency pair the resolver cannot convert."""

    from_currency: Currency
    to_currency: Currency

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency.code, self.to_currency.code)


__all__ = ["Currency", "ActiveCurrencySet", "CurrencyGap", "UserRateSettings"]
