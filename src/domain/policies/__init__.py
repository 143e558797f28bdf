"""Domain policies package."""

from .currency_visibility import visible_currencies

__all__ = ["visible_currencies"]
