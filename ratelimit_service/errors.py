"""
Error types raised by the rate limit service.

Callers decide whether an error means fail-open or fail-closed; nothing in
this package makes that decision for them.
"""


class RateLimitError(Exception):
    """Base class for every error raised by the rate limit service."""


class ConfigurationError(RateLimitError):
    """Rate limit configuration is invalid (e.g. the 'none' tier is missing)."""


class UpstreamUnavailableError(RateLimitError):
    """A collaborator the service depends on could not be reached or failed."""


class EntitlementSourceError(UpstreamUnavailableError):
    """The entitlement source failed for a reason other than 'user not found'."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class StorageUnavailableError(UpstreamUnavailableError):
    """The counter store could not complete an operation."""


class InvalidPeriodTypeError(RateLimitError, ValueError):
    """A caller asked for a period type that does not exist."""

    def __init__(self, period_type):
        super().__init__(f"Invalid period type: {period_type!r}")
        self.period_type = period_type
