"""Text embeddings from a local Ollama model or Google's embedding API.

Both backends produce vectors of the configured dimension (384 by default,
the size of ``all-minilm``) so interest vectors stay comparable when a user
switches backends. A failed call raises; no placeholder vector is ever
returned.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

import aiohttp
import structlog

from src.models.config import EnrichmentConfig, ProviderSettings
from src.services.llm.providers.google import create_genai_client
from src.utils.exceptions import DimensionMismatchError, EmbeddingError

logger = structlog.get_logger()


class EmbeddingProvider(ABC):
    """Abstract embedding backend"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed ``text``.

        Raises:
            EmbeddingError: If the backend fails or returns no vector
        """
        pass


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Ollama ``/api/embeddings`` backend"""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "all-minilm",
        timeout_seconds: float = 60.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def name(self) -> str:
        return "ollama"

    async def embed(self, text: str) -> List[float]:
        url = f"{self.base_url}/api/embeddings"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    url, json={"model": self.model, "prompt": text}
                ) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise EmbeddingError(
                            f"Ollama embedding failed ({response.status}): {body[:200]}"
                        )
                    data = await response.json()
        except asyncio.TimeoutError as e:
            raise EmbeddingError(f"Ollama embedding timed out: {url}") from e
        except aiohttp.ClientError as e:
            raise EmbeddingError(f"Ollama embedding request failed: {e}") from e

        embedding = data.get("embedding")
        if not embedding:
            raise EmbeddingError("Ollama returned no embedding")
        return [float(x) for x in embedding]


class GoogleEmbeddingProvider(EmbeddingProvider):
    """Google ``embed_content`` backend, truncated to the shared dimension"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "text-embedding-004",
        dimension: int = 384,
        client: Any = None,
    ):
        self.model = model
        self.dimension = dimension
        self._client = client if client is not None else create_genai_client(api_key)

    @property
    def name(self) -> str:
        return "google"

    async def embed(self, text: str) -> List[float]:
        try:
            from google.genai import types

            response = await self._client.aio.models.embed_content(
                model=self.model,
                contents=text,
                config=types.EmbedContentConfig(output_dimensionality=self.dimension),
            )
        except Exception as e:
            raise EmbeddingError(f"Google embedding failed: {e}") from e

        embeddings = getattr(response, "embeddings", None) or []
        if not embeddings or not getattr(embeddings[0], "values", None):
            raise EmbeddingError("Google returned no embedding")
        return [float(x) for x in embeddings[0].values]


class EmbeddingService:
    """Chooses a backend per call and validates its output"""

    def __init__(
        self,
        local: EmbeddingProvider,
        cloud_factory: Optional[Callable[[], EmbeddingProvider]] = None,
        dimension: int = 384,
    ):
        self.local = local
        self._cloud_factory = cloud_factory
        self._cloud: Optional[EmbeddingProvider] = None
        self.dimension = dimension

    @classmethod
    def from_config(
        cls,
        enrichment: EnrichmentConfig,
        providers: ProviderSettings,
    ) -> "EmbeddingService":
        local = OllamaEmbeddingProvider(
            base_url=providers.ollama_base_url,
            model=enrichment.local_embedding_model,
            timeout_seconds=providers.request_timeout_seconds,
        )
        return cls(
            local=local,
            cloud_factory=lambda: GoogleEmbeddingProvider(
                api_key=providers.google_api_key,
                model=enrichment.cloud_embedding_model,
                dimension=enrichment.embedding_dimension,
            ),
            dimension=enrichment.embedding_dimension,
        )

    def _provider(self, use_local: bool) -> EmbeddingProvider:
        if use_local:
            return self.local
        if self._cloud is None:
            if self._cloud_factory is None:
                raise EmbeddingError("No cloud embedding backend configured")
            # Built lazily; raises ConfigurationError when credentials are missing
            self._cloud = self._cloud_factory()
        return self._cloud

    async def embed(self, text: str, use_local: bool = True) -> List[float]:
        """Embed ``text`` with the selected backend.

        Raises:
            EmbeddingError: If the backend fails
            DimensionMismatchError: If the vector has the wrong dimension
            ConfigurationError: If the cloud backend has no credentials
        """
        provider = self._provider(use_local)
        vector = await provider.embed(text)
        if len(vector) != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=len(vector))
        logger.debug("text_embedded", provider=provider.name, dimension=len(vector))
        return vector
