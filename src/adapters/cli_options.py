"""Environment-driven options shared by the CLI adapters."""

from datetime import date
import os


def read_user_id(logger) -> str | None:
    """Return LEDGER_USER_ID, logging a warning when it is missing."""
    user_id = os.getenv("LEDGER_USER_ID", "").strip()
    if not user_id:
        logger.warning("LEDGER_USER_ID is required.")
        return None
    return user_id


def parse_date(value: str | None, logger) -> date | None:
    """Parse an ISO date string into a date.

    Args:
        value: Date string in YYYY-MM-DD format.
        logger: Logger used for warnings.

    Returns:
        date | None: Parsed date or None when missing or invalid.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.warning(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        )
        return None


def parse_flag(value: str | None) -> bool:
    """Return True for the usual truthy environment spellings."""
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


__all__ = ["read_user_id", "parse_date", "parse_flag"]
