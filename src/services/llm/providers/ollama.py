"""Ollama Provider Implementation

Local models served by an Ollama daemon (``POST /api/generate``).
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Dict

import aiohttp
import structlog

from src.services.llm.exceptions import (
    LLMProviderError,
    ModelNotFoundError,
    ProviderUnavailableError,
)
from src.services.llm.providers.base import LLMProvider, LLMResponse, ProviderHealth

logger = structlog.get_logger()


class OllamaProvider(LLMProvider):
    """Ollama provider implementation."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.2",
        timeout_seconds: float = 60.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._health = ProviderHealth(provider="ollama")

    @property
    def name(self) -> str:
        return "ollama"

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
        """Generate text with the local model.

        Raises:
            ModelNotFoundError: When the model has not been pulled
            ProviderUnavailableError: When the daemon is unreachable or fails
        """
        payload: Dict[str, Any] = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        if json_output:
            payload["format"] = "json"

        start_time = time.time()
        try:
            data = await self._post("/api/generate", payload)
        except LLMProviderError as e:
            self._health.record_failure(str(e))
            raise

        latency_ms = (time.time() - start_time) * 1000
        self._health.record_success()

        response = LLMResponse(
            content=str(data.get("response", "")),
            model=self._model,
            provider=self.name,
            latency_ms=latency_ms,
            input_tokens=int(data.get("prompt_eval_count", 0) or 0),
            output_tokens=int(data.get("eval_count", 0) or 0),
            timestamp=datetime.utcnow(),
        )
        logger.debug(
            "ollama_generate_success",
            model=self._model,
            latency_ms=latency_ms,
        )
        return response

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(url, json=payload) as response:
                    if response.status == 404:
                        raise ModelNotFoundError(
                            model=self._model, provider=self.name
                        )
                    if response.status != 200:
                        text = await response.text()
                        raise ProviderUnavailableError(
                            f"Ollama returned {response.status}: {text[:200]}",
                            provider=self.name,
                        )
                    return await response.json()
        except asyncio.TimeoutError as e:
            raise ProviderUnavailableError(
                f"Ollama request timed out: {url}", provider=self.name
            ) from e
        except aiohttp.ClientError as e:
            raise ProviderUnavailableError(
                f"Ollama request failed: {e}", provider=self.name
            ) from e

    def get_health(self) -> ProviderHealth:
        return self._health
