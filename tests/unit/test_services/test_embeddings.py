"""Tests for embedding backends and the embedding service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.services.embeddings import (
    EmbeddingService,
    GoogleEmbeddingProvider,
    OllamaEmbeddingProvider,
)
from src.utils.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
)


def mock_session(status=200, json_data=None, text=""):
    """ClientSession stand-in whose post() yields a canned response."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)

    request = MagicMock()
    request.__aenter__.return_value = response
    request.__aexit__.return_value = False

    session = MagicMock()
    session.post.return_value = request

    session_cm = MagicMock()
    session_cm.__aenter__.return_value = session
    session_cm.__aexit__.return_value = False
    return session_cm


def fake_provider(vector, name="local"):
    provider = MagicMock()
    provider.name = name
    provider.embed = AsyncMock(return_value=vector)
    return provider


class TestOllamaEmbeddingProvider:
    """Tests for OllamaEmbeddingProvider."""

    @pytest.mark.asyncio
    async def test_returns_floats(self):
        """The embedding field is returned as floats."""
        with patch(
            "src.services.embeddings.aiohttp.ClientSession",
            return_value=mock_session(json_data={"embedding": [1, 2, 3]}),
        ):
            vector = await OllamaEmbeddingProvider().embed("hello")

        assert vector == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_http_error(self):
        """Non-200 responses raise EmbeddingError."""
        with patch(
            "src.services.embeddings.aiohttp.ClientSession",
            return_value=mock_session(status=500, text="boom"),
        ):
            with pytest.raises(EmbeddingError, match="500"):
                await OllamaEmbeddingProvider().embed("hello")

    @pytest.mark.asyncio
    async def test_empty_embedding(self):
        """A response without a vector is an error, never a placeholder."""
        with patch(
            "src.services.embeddings.aiohttp.ClientSession",
            return_value=mock_session(json_data={"embedding": []}),
        ):
            with pytest.raises(EmbeddingError):
                await OllamaEmbeddingProvider().embed("hello")


class TestGoogleEmbeddingProvider:
    """Tests for GoogleEmbeddingProvider."""

    def test_requires_api_key(self):
        """Missing credentials are a configuration error."""
        with pytest.raises(ConfigurationError):
            GoogleEmbeddingProvider(api_key=None)

    @pytest.mark.asyncio
    async def test_client_failure_wrapped(self):
        """Client exceptions become EmbeddingError."""
        client = MagicMock()
        client.aio.models.embed_content = AsyncMock(side_effect=RuntimeError("quota"))
        provider = GoogleEmbeddingProvider(api_key=None, client=client)

        with pytest.raises(EmbeddingError, match="quota"):
            await provider.embed("hello")

    @pytest.mark.asyncio
    async def test_returns_values(self):
        """The first embedding's values are returned."""
        client = MagicMock()
        client.aio.models.embed_content = AsyncMock(
            return_value=SimpleNamespace(embeddings=[SimpleNamespace(values=[0.5, 0.5])])
        )
        provider = GoogleEmbeddingProvider(api_key=None, client=client, dimension=2)

        assert await provider.embed("hello") == [0.5, 0.5]


class TestEmbeddingService:
    """Tests for EmbeddingService."""

    @pytest.mark.asyncio
    async def test_local_by_default(self):
        """The local backend serves use_local=True."""
        service = EmbeddingService(local=fake_provider([0.1, 0.2]), dimension=2)
        assert await service.embed("x") == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_dimension_checked(self):
        """Vectors of the wrong size are rejected."""
        service = EmbeddingService(local=fake_provider([0.1, 0.2, 0.3]), dimension=2)

        with pytest.raises(DimensionMismatchError):
            await service.embed("x")

    @pytest.mark.asyncio
    async def test_cloud_built_lazily_once(self):
        """The cloud backend is created on first use and reused."""
        cloud = fake_provider([1.0, 0.0], name="google")
        factory = MagicMock(return_value=cloud)
        service = EmbeddingService(
            local=fake_provider([0.0, 1.0]), cloud_factory=factory, dimension=2
        )

        assert factory.call_count == 0
        await service.embed("x", use_local=False)
        await service.embed("y", use_local=False)

        assert factory.call_count == 1
        assert cloud.embed.await_count == 2

    @pytest.mark.asyncio
    async def test_no_cloud_backend(self):
        """Cloud requests without a cloud backend fail."""
        service = EmbeddingService(local=fake_provider([0.0]), dimension=1)

        with pytest.raises(EmbeddingError):
            await service.embed("x", use_local=False)
