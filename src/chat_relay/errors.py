"""Exception taxonomy for the relay core.

Provider failures are recovered inside the router; only validation errors
and router defects ever reach the HTTP layer.
"""


class RelayError(Exception):
    """Base class for all chat relay errors."""


class AdapterError(RelayError):
    """A provider call failed (network error, bad status, bad payload)."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class AdapterTimeoutError(AdapterError):
    """A provider call did not finish before its deadline."""


class ProviderUnavailableError(AdapterError):
    """A provider was called but is not configured (missing credentials)."""
