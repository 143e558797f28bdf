"""Use case listing active currencies that cannot reach the base currency."""

from collections.abc import Callable
from datetime import date

from src.application.ports.currency_registry import CurrencyRegistryPort
from src.application.use_cases.resolve_rate import ResolveRateUseCase
from src.domain.models import CurrencyGap
from src.domain.services import normalize_effective_date, require_user
from src.infrastructure.logging.logger import get_app_logger


class FindRateGapsUseCase:
    """Report (currency, base) pairs with no resolvable rate."""

    def __init__(
        self,
        currency_registry: CurrencyRegistryPort,
        resolver: ResolveRateUseCase,
        logger=None,
        today: Callable[[], date] | None = None,
    ) -> None:
        """Initialize the use case.

        Args:
            currency_registry: Port providing the user's active currencies.
            resolver: Use case resolving individual rates.
            logger: Optional logger compatible with logging.Logger-like API.
            today: Optional callable returning the current date.
        """
        self._currency_registry = currency_registry
        self._resolver = resolver
        self._logger = logger or get_app_logger()
        self._today = today or date.today

    def execute(
        self,
        user_id: str,
        today: date | None = None,
    ) -> list[CurrencyGap]:
        """Return the active currencies without a rate into the base currency.

        Args:
            user_id: Owning user.
            today: Optional lookup date; defaults to the current date.

        Returns:
            list[CurrencyGap]: One gap per unresolved (currency, base) pair,
            in the user's display order.
        """
        user = require_user(user_id)
        as_of = normalize_effective_date(today or self._today())
        active = self._currency_registry.fetch_active_currencies(user)
        base_code = active.base_currency_code
        if not base_code:
            self._logger.warning(f"User {user} has no base currency")
            return []
        base = active.base_currency or self._currency_registry.fetch_currency(
            user,
            base_code,
        )
        if base is None:
            self._logger.warning(
                f"Base currency {base_code} is not visible to user {user}"
            )
            return []

        gaps = []
        for currency in active.currencies:
            if currency.code == base.code:
                continue
            result = self._resolver.execute(user, currency.code, base.code, as_of)
            if not result.is_found:
                gaps.append(CurrencyGap(from_currency=currency, to_currency=base))

        if gaps:
            self._logger.warning(
                f"Missing rates for user {user}: "
                + ", ".join(f"{a}->{b}" for a, b in (gap.pair for gap in gaps))
            )
        return gaps


__all__ = ["FindRateGapsUseCase"]
