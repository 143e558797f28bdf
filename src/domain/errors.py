"""Domain errors for the exchange-rate engine."""


class LedgerFxError(Exception):
    """Base class for errors raised by the exchange-rate engine."""


class ValidationError(LedgerFxError, ValueError):
    """Input rejected before any storage mutation."""


class MissingUserContextError(ValidationError):
    """Operation attempted without a user identifier."""


class UpstreamFeedError(LedgerFxError):
    """External rate feed unavailable or returned an unusable payload.

    Attributes:
        code: Short machine-readable category (e.g. RATE_LIMIT_EXCEEDED).
    """

    def __init__(self, message: str, code: str = "FEED_ERROR") -> None:
        super().__init__(message)
        self.code = code


class RateEdgeNotFoundError(LedgerFxError, LookupError):
    """An authoritative edge referenced by id does not exist."""


__all__ = [
    "LedgerFxError",
    "ValidationError",
    "MissingUserContextError",
    "UpstreamFeedError",
    "RateEdgeNotFoundError",
]
