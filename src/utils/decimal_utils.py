"""Helpers for Decimal normalization of rates and amounts."""

from decimal import Decimal, InvalidOperation


def coerce_decimal(value, *, allow_none: bool = True) -> Decimal:
    """Normalize numeric values to Decimal.

    Rates are persisted as decimal strings, so text is parsed directly and
    floats go through ``str`` to avoid binary artefacts.

    Args:
        value: Raw numeric value from SQL, adapters or callers.
        allow_none: Map ``None`` to zero instead of raising.

    Returns:
        Decimal: Normalized numeric value.

    Raises:
        ValueError: If the value is missing (when not allowed) or unparseable.
    """
    if value is None:
        if allow_none:
            return Decimal("0")
        raise ValueError("Missing decimal value")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid decimal value: {value!r}") from exc


__all__ = ["coerce_decimal"]
