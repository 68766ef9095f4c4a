"""
GoldKeeper exception hierarchy.

All GoldKeeper exceptions inherit from GoldKeeperError, so callers can catch
library-level errors while still distinguishing specific failure modes.
"""


class GoldKeeperError(Exception):
    """Base exception class for all GoldKeeper errors."""


class NotFoundError(GoldKeeperError):
    """Raised when a referenced user or record does not exist (or is not the caller's)."""


class ValidationError(GoldKeeperError):
    """Raised for malformed numeric input such as a non-positive weight or price."""


class UpstreamError(GoldKeeperError):
    """Raised when the gold price feed is unreachable or returns unusable data."""


class ConflictError(GoldKeeperError):
    """Raised when a concurrent zakat recompute could not be reconciled."""
