"""
localseo/errors.py

Exception hierarchy for acquisition and scoring failures.

Only configuration errors are expected to reach callers of the service
layer; everything else is absorbed into empty or failed per-item results.
"""

from __future__ import annotations


class LocalSEOError(RuntimeError):
    """
    Base class for engine errors.
    """


class ConfigurationError(LocalSEOError):
    """
    Raised when required provider credentials or endpoints are missing.
    """


class TransientNetworkError(LocalSEOError):
    """
    Raised for connection resets, timeouts and retryable status codes.
    """


class ProviderRequestError(LocalSEOError):
    """
    Raised when a provider call fails permanently or after retries.
    """

    def __init__(self, provider: str, message: str, *, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class ProviderParseError(LocalSEOError):
    """
    Raised when a provider response does not have the expected shape.
    """

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class BrowserNavigationError(LocalSEOError):
    """
    Raised by browser backends when navigation or content capture fails.

    The message carries the backend error text used to classify the failure.
    """

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        self.detail = message
        super().__init__(f"Navigation to {url} failed: {message}")
