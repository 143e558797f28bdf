"""Application port for currency records and user currency selections."""

from typing import Protocol

from src.domain.models import ActiveCurrencySet, Currency


class CurrencyRegistryPort(Protocol):
    """Port exposing the currencies a user can see and has activated."""

    def fetch_visible_currencies(self, user_id: str) -> list[Currency]:
        """Return one currency record per code visible to the user."""

    def fetch_currency(self, user_id: str, code: str) -> Currency | None:
        """Return the currency a code resolves to for the user."""

    def fetch_active_currencies(self, user_id: str) -> ActiveCurrencySet:
        """Return the user's active currencies and base currency."""

    def create_custom_currency(self, user_id: str, currency: Currency) -> Currency:
        """Persist a user-owned currency and return it."""


__all__ = ["CurrencyRegistryPort"]
