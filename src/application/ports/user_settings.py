"""Application port for per-user feed settings."""

from datetime import datetime
from typing import Protocol

from src.domain.models import UserRateSettings


class UserSettingsPort(Protocol):
    """Port exposing feed refresh settings for a user."""

    def fetch_settings(self, user_id: str) -> UserRateSettings | None:
        """Return the user's settings, or None when the user has none."""

    def record_feed_update(self, user_id: str, updated_at: datetime) -> None:
        """Store the time of the last successful feed refresh."""


__all__ = ["UserSettingsPort"]
