"""Domain validation helpers."""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from logging import Logger

from src.domain.constants import (
    CURRENCY_CODE_PATTERN,
    MAX_DECIMAL_PLACES,
    MAX_NOTE_LENGTH,
    MAX_RATE,
    MAX_RATE_DECIMAL_PLACES,
    MIN_DECIMAL_PLACES,
    REVERSE_RATE_TOLERANCE,
)
from src.domain.errors import MissingUserContextError, ValidationError
from src.domain.services.normalization import normalize_currency_code

_CODE_RE = re.compile(CURRENCY_CODE_PATTERN)


def require_user(user_id: str | None) -> str:
    """Return the user id or raise when the user context is missing."""
    if not user_id or not str(user_id).strip():
        raise MissingUserContextError("A user id is required")
    return str(user_id).strip()


def validate_currency_code(code: str | None) -> str:
    """Return a normalized currency code.

    Raises:
        ValidationError: If the code is empty or malformed.
    """
    normalized = normalize_currency_code(code)
    if normalized is None or not _CODE_RE.match(normalized):
        raise ValidationError(f"Invalid currency code: {code!r}")
    return normalized


def validate_rate(value) -> Decimal:
    """Return a validated authoritative rate as a Decimal.

    Args:
        value: Raw rate (Decimal, int, float, or numeric string).

    Returns:
        Decimal: The rate, unchanged in value.

    Raises:
        ValidationError: If the rate is not a finite positive number within
            the accepted magnitude and precision.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid rate: {value!r}")
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError(f"Invalid rate: {value!r}") from exc
    if not rate.is_finite():
        raise ValidationError(f"Rate must be finite: {value!r}")
    if rate <= 0:
        raise ValidationError(f"Rate must be greater than zero: {rate}")
    if rate > MAX_RATE:
        raise ValidationError(f"Rate exceeds {MAX_RATE}: {rate}")
    exponent = rate.normalize().as_tuple().exponent
    if isinstance(exponent, int) and -exponent > MAX_RATE_DECIMAL_PLACES:
        raise ValidationError(
            f"Rate has more than {MAX_RATE_DECIMAL_PLACES} decimal places: {rate}"
        )
    return rate


def validate_currency_pair(from_code: str | None, to_code: str | None) -> tuple[str, str]:
    """Return a normalized, distinct (from, to) pair.

    Raises:
        ValidationError: If a code is malformed or both codes are equal.
    """
    from_currency = validate_currency_code(from_code)
    to_currency = validate_currency_code(to_code)
    if from_currency == to_currency:
        raise ValidationError(
            f"Source and target currency must differ: {from_currency}"
        )
    return from_currency, to_currency


def validate_note(note: str | None) -> str | None:
    """Return the stripped note or raise when it is too long."""
    if note is None:
        return None
    cleaned = note.strip()
    if len(cleaned) > MAX_NOTE_LENGTH:
        raise ValidationError(
            f"Note exceeds {MAX_NOTE_LENGTH} characters"
        )
    return cleaned or None


def validate_not_future(effective_date: date, today: date) -> None:
    """Reject manual rates dated after today."""
    if effective_date > today:
        raise ValidationError(
            f"Effective date {effective_date.isoformat()} is in the future"
        )


def validate_decimal_places(decimal_places: int) -> int:
    """Return the precision when it lies within the supported range."""
    if isinstance(decimal_places, bool) or not isinstance(decimal_places, int):
        raise ValidationError(f"Invalid decimal places: {decimal_places!r}")
    if not MIN_DECIMAL_PLACES <= decimal_places <= MAX_DECIMAL_PLACES:
        raise ValidationError(
            f"Decimal places must be between {MIN_DECIMAL_PLACES} "
            f"and {MAX_DECIMAL_PLACES}: {decimal_places}"
        )
    return decimal_places


def check_reverse_consistency(
    rate: Decimal,
    reverse_rate: Decimal | None,
    pair: tuple[str, str],
    logger: Logger,
) -> list[str]:
    """Warn when an authoritative reverse rate disagrees with 1/rate.

    Args:
        rate: Rate being recorded for ``pair``.
        reverse_rate: Authoritative rate of the reverse pair, if any.
        pair: (from, to) codes of the recorded rate.
        logger: Logger used for warnings.

    Returns:
        list[str]: Warning messages, empty when consistent.
    """
    if reverse_rate is None:
        return []
    expected = Decimal(1) / rate
    if abs(expected - reverse_rate) <= REVERSE_RATE_TOLERANCE:
        return []
    from_currency, to_currency = pair
    message = (
        f"Reverse rate {to_currency}->{from_currency} is {reverse_rate}, "
        f"expected about {expected:.6f}"
    )
    logger.warning(message)
    return [message]


__all__ = [
    "require_user",
    "validate_currency_code",
    "validate_rate",
    "validate_currency_pair",
    "validate_note",
    "validate_not_future",
    "validate_decimal_places",
    "check_reverse_consistency",
]
