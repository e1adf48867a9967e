"""LLM Provider Implementations

- LLMProvider: Abstract base class defining the provider contract
- LLMResponse: Standardized response from any provider
- OllamaProvider: Local models (llama3.2, etc.)
- GoogleProvider: Gemini models
"""

from src.services.llm.providers.base import LLMProvider, LLMResponse
from src.services.llm.providers.ollama import OllamaProvider
from src.services.llm.providers.google import GoogleProvider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "OllamaProvider",
    "GoogleProvider",
]
