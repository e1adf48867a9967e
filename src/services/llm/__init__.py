"""LLM Service Package

This package provides:
- Provider implementations (Ollama, Google)
- Response parsing for classification output

Usage:
    from src.services.llm import OllamaProvider, ResponseParser
"""

from src.services.llm.response_parser import ResponseParser
from src.services.llm.providers.base import LLMProvider, LLMResponse, ProviderHealth
from src.services.llm.providers.ollama import OllamaProvider
from src.services.llm.providers.google import GoogleProvider
from src.services.llm.exceptions import (
    LLMProviderError,
    RateLimitError,
    AuthenticationError,
    ContentFilterError,
    ProviderUnavailableError,
    ModelNotFoundError,
)

__all__ = [
    "ResponseParser",
    "LLMProvider",
    "LLMResponse",
    "ProviderHealth",
    "OllamaProvider",
    "GoogleProvider",
    "LLMProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ContentFilterError",
    "ProviderUnavailableError",
    "ModelNotFoundError",
]
