"""Google (Gemini) Provider Implementation"""

import time
from datetime import datetime
from typing import Any, Optional

import structlog

from src.services.llm.exceptions import (
    AuthenticationError,
    ContentFilterError,
    LLMProviderError,
    ProviderUnavailableError,
    RateLimitError,
)
from src.services.llm.providers.base import LLMProvider, LLMResponse, ProviderHealth
from src.utils.exceptions import ConfigurationError

logger = structlog.get_logger()


def create_genai_client(api_key: Optional[str]) -> Any:
    """Build a google-genai client.

    Raises:
        ConfigurationError: If no API key is configured
        LLMProviderError: If google-genai package is not installed
    """
    if not api_key:
        raise ConfigurationError(
            "GOOGLE_API_KEY is required for cloud models (use_local=False)"
        )
    try:
        from google import genai
    except ImportError:
        raise LLMProviderError(
            "google-genai package not installed. Run: pip install google-genai",
            provider="google",
        )
    return genai.Client(api_key=api_key)


class GoogleProvider(LLMProvider):
    """Google Gemini provider implementation."""

    # Error patterns for classification
    RATE_LIMIT_PATTERNS = [
        "429",
        "rate limit",
        "rate_limit",
        "quota exceeded",
        "resource_exhausted",
    ]

    RETRYABLE_PATTERNS = [
        "timeout",
        "timed out",
        "connection",
        "temporary",
        "internal server",
        "502",
        "503",
        "504",
        "unavailable",
    ]

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash",
        client: Any = None,
    ):
        """Initialize Google provider.

        Args:
            api_key: Google API key
            model: Model identifier
            client: Prebuilt google-genai client (tests)

        Raises:
            ConfigurationError: If no API key is configured
        """
        self._model = model
        self._health = ProviderHealth(provider="google")
        self._client = client if client is not None else create_genai_client(api_key)

    @property
    def name(self) -> str:
        return "google"

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        prompt: str,
        json_output: bool = False,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Generate text using Gemini.

        Raises:
            RateLimitError: When rate limit is exceeded
            AuthenticationError: When API key is invalid
            ContentFilterError: When content is blocked
            ProviderUnavailableError: When service is down
        """
        start_time = time.time()

        try:
            from google.genai import types

            config = types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
                response_mime_type="application/json" if json_output else None,
            )
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            self._health.record_failure(str(e))
            raise self._classify_error(e)

        latency_ms = (time.time() - start_time) * 1000
        usage = getattr(response, "usage_metadata", None)

        llm_response = LLMResponse(
            content=getattr(response, "text", "") or "",
            model=self._model,
            provider=self.name,
            latency_ms=latency_ms,
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            timestamp=datetime.utcnow(),
        )
        self._health.record_success()

        logger.debug(
            "google_generate_success",
            model=self._model,
            latency_ms=latency_ms,
        )
        return llm_response

    def _classify_error(self, error: Exception) -> LLMProviderError:
        """Classify exception into appropriate error type."""
        if isinstance(error, LLMProviderError):
            return error

        error_str = str(error).lower()

        if "authentication" in error_str or "401" in error_str or "api_key" in error_str:
            return AuthenticationError(str(error), provider=self.name)

        if "safety" in error_str or "blocked" in error_str:
            return ContentFilterError(str(error), provider=self.name)

        if any(pattern in error_str for pattern in self.RATE_LIMIT_PATTERNS):
            retry_after = getattr(error, "retry_after", None)
            return RateLimitError(
                str(error),
                retry_after=float(retry_after) if retry_after is not None else None,
                provider=self.name,
            )

        if any(pattern in error_str for pattern in self.RETRYABLE_PATTERNS):
            return ProviderUnavailableError(str(error), provider=self.name)

        return LLMProviderError(str(error), provider=self.name)

    def get_health(self) -> ProviderHealth:
        return self._health
