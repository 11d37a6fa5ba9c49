# daily_news/exceptions.py
"""
Custom exceptions for the daily news dashboard.
Provides specific error types for different failure modes.
"""
from __future__ import annotations


class DailyNewsError(Exception):
    """Base exception for dashboard errors."""
    pass


class DataError(DailyNewsError):
    """Raised when there's an issue with data quality or availability."""
    pass


class MarketDataUnavailableError(DataError):
    """Raised when neither a live fetch nor the cache produced ticker data."""
    def __init__(self, detail: str = ""):
        self.detail = detail
        msg = "No market data available"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class StorageError(DailyNewsError):
    """Raised by a storage backend when a read or write fails."""
    pass


class ProviderError(DailyNewsError):
    """Raised when an upstream data provider fails."""
    pass


class RateLimitError(ProviderError):
    """Raised when API rate limit is exceeded."""
    def __init__(self, provider: str, retry_after: int | None = None):
        self.provider = provider
        self.retry_after = retry_after
        msg = f"Rate limit exceeded for {provider}"
        if retry_after:
            msg += f", retry after {retry_after}s"
        super().__init__(msg)


class ConfigurationError(DailyNewsError):
    """Raised when configuration is invalid or missing."""
    pass


class APIKeyMissingError(ConfigurationError):
    """Raised when a required API key is not configured."""
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"API key not configured for {provider}")
