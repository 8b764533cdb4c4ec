"""
Exception hierarchy.

The retry loop itself reports failures as result values (see reask.results);
these exceptions are raised at the edges: by adapters talking to providers,
by configuration loading, and by ``unwrap()`` on a failed result.
"""

from typing import Any, Optional


class ReaskError(Exception):
    """Base for all reask errors."""


class ConfigError(ReaskError):
    """Missing or invalid configuration (unknown provider, bad env value, no API key)."""


class ProviderError(ReaskError):
    """
    A provider call failed (transport error, HTTP error status, unusable body).

    Adapters raise this from ``complete``; the orchestrator converts it into an
    ``AdapterError`` result.

    Attributes:
        status_code: HTTP status when the failure came from a response
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """Authentication rejected by the provider (401/403)."""


class ProviderResponseError(ProviderError):
    """Provider answered, but not in the shape the adapter expects."""


class ResultError(ReaskError):
    """Raised by ``unwrap()`` on a non-success result."""

    def __init__(self, message: str, result: Any):
        super().__init__(message)
        self.result = result
