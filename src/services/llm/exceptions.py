"""LLM Provider Exception Hierarchy

Structured exception types for LLM provider errors:
- LLMProviderError: Base class for all provider errors
- RateLimitError: Rate limit exceeded (retryable with backoff)
- AuthenticationError: Invalid API credentials
- ContentFilterError: Content blocked by safety filters
- ProviderUnavailableError: Provider temporarily unavailable
- ModelNotFoundError: Model not pulled / not available
"""

from typing import Optional

from src.utils.exceptions import CuratorError


class LLMProviderError(CuratorError):
    """Base exception for all LLM provider errors.

    All provider-specific errors inherit from this class,
    enabling consistent error handling across providers.
    """

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class RateLimitError(LLMProviderError):
    """Raised when provider rate limit is exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        provider: Optional[str] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"{message}. Retry after: {retry_after}s" if retry_after else message,
            provider=provider,
        )


class AuthenticationError(LLMProviderError):
    """Raised when API authentication fails.

    This is NOT retryable - the API key is invalid or revoked.
    """

    def __init__(
        self,
        message: str = "API authentication failed",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class ContentFilterError(LLMProviderError):
    """Raised when content is blocked by safety filters."""

    def __init__(
        self,
        message: str = "Content blocked by safety filters",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class ProviderUnavailableError(LLMProviderError):
    """Raised when provider is temporarily unavailable.

    Includes connection failures, timeouts and server errors (5xx).
    """

    def __init__(
        self,
        message: str = "Provider temporarily unavailable",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class ModelNotFoundError(LLMProviderError):
    """Raised when the specified model is not available.

    For Ollama this usually means the model has not been pulled.
    """

    def __init__(
        self,
        message: str = "Model not found",
        model: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self.model = model
        super().__init__(
            f"{message}: {model}" if model else message,
            provider=provider,
        )
