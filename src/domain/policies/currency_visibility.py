"""Policy deciding which currency record a user sees for each code."""

from collections.abc import Iterable

from src.domain.models import Currency


def visible_currencies(
    currencies: Iterable[Currency],
    user_id: str,
) -> list[Currency]:
    """Return the currencies visible to a user, one record per code.

    Global currencies are visible to everyone; a currency owned by the user
    shadows a global currency with the same code. Currencies owned by other
    users are never visible.

    Args:
        currencies: Candidate global and user-owned currency records.
        user_id: User whose view is computed.

    Returns:
        list[Currency]: Visible currencies sorted by code.
    """
    by_code: dict[str, Currency] = {}
    for currency in currencies:
        if currency.owner_user_id not in (None, user_id):
            continue
        current = by_code.get(currency.code)
        if current is None or (currency.is_custom and not current.is_custom):
            by_code[currency.code] = currency
    return [by_code[code] for code in sorted(by_code)]


__all__ = ["visible_currencies"]
