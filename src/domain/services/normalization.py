"""Domain normalization helpers."""

from datetime import date, datetime

from src.domain.errors import ValidationError


def normalize_currency_code(code: str | None) -> str | None:
    """Normalize currency code values.

    Args:
        code: Raw currency code from a caller or repository.

    Returns:
        str | None: Stripped uppercase code, or None when blank.
    """
    if not code:
        return None
    cleaned = code.strip()
    return cleaned.upper() if cleaned else None


def normalize_effective_date(value: date | datetime | str | None) -> date:
    """Normalize an effective date to calendar-day granularity.

    Args:
        value: Date, datetime, or ISO string (YYYY-MM-DD or full timestamp).

    Returns:
        date: The calendar date the value falls on.

    Raises:
        ValidationError: If the value is missing or cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(raw).date()
        except ValueError:
            pass
    raise ValidationError(
        f"Invalid effective date '{value}'. Expected format YYYY-MM-DD."
    )


__all__ = ["normalize_currency_code", "normalize_effective_date"]
