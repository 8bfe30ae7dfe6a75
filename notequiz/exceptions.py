"""
Exceptions raised by the quiz generation pipeline.

Per-provider failures (ConfigurationError, ProviderUnavailable, UpstreamError)
are recovered by the orchestrator, which moves on to the next provider.
Only NoProviderAvailable reaches the caller.
"""
from typing import List, Optional


class QuizCoreError(Exception):
    pass


class ProviderError(QuizCoreError):
    """Failure of a single provider call."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ConfigurationError(ProviderError):
    """A required credential or setting is missing."""
    pass


class ProviderUnavailable(ProviderError):
    """The availability check failed."""
    pass


class UpstreamError(ProviderError):
    """Non-2xx response or transport failure during the generate call."""

    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, provider=provider)


class NoProviderAvailable(QuizCoreError):
    """Every configured provider was unavailable or failed."""

    def __init__(self, message: str, failures: Optional[List[dict]] = None):
        self.failures = failures or []
        super().__init__(message)
