"""Unit tests for embedding provider adapters -- OpenAI, Nomic."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from kbase.config.settings import Settings
from kbase.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from kbase.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from kbase.utils.errors import EmbeddingError
from tests.fakes import make_settings


def _settings(tmp_path: Path, **overrides) -> Settings:
    defaults = {"openai_api_key": "sk-test", "ollama_base_url": "http://localhost:11434"}
    defaults.update(overrides)
    return make_settings(tmp_path, **defaults)


def _mock_client(dimension: int = 3) -> MagicMock:
    """An AsyncOpenAI stand-in answering one vector per input text."""

    async def _create(input: list[str], model: str) -> MagicMock:
        response = MagicMock()
        response.data = [MagicMock(embedding=[float(i)] * dimension) for i, _ in enumerate(input)]
        response.usage = MagicMock(total_tokens=len(input))
        return response

    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=_create)
    return client


def _api_error() -> openai.APIError:
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    return openai.APIError("rate limited", request=request, body=None)


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_defaults(self, tmp_path: Path) -> None:
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), client=_mock_client())

        assert provider.model == "text-embedding-3-small"
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"
        assert provider.is_available() is True

    def test_model_override_and_dimension(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, openai_embedding_model="text-embedding-3-small")
        provider = OpenAIEmbeddingProvider(settings, model="text-embedding-3-large", client=_mock_client())

        assert provider.model == "text-embedding-3-large"
        assert provider.get_dimension() == 3072

    def test_unknown_model_dimension(self, tmp_path: Path) -> None:
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), model="custom/model", client=_mock_client())
        assert provider.get_dimension() == 768

    def test_compatible_endpoint_label(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, openai_base_url="https://api.together.xyz/v1")
        provider = OpenAIEmbeddingProvider(settings, client=_mock_client())
        assert provider.get_provider_name() == "openai-compatible_embedding"

    def test_unavailable_without_key(self, tmp_path: Path) -> None:
        provider = OpenAIEmbeddingProvider(_settings(tmp_path, openai_api_key=""), client=_mock_client())
        assert provider.is_available() is False

    def test_builds_client_from_settings(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, openai_base_url="https://api.together.xyz/v1")
        provider = OpenAIEmbeddingProvider(settings)

        assert isinstance(provider._client, openai.AsyncOpenAI)
        assert str(provider._client.base_url).startswith("https://api.together.xyz/v1")

    @pytest.mark.asyncio
    async def test_embed_single(self, tmp_path: Path) -> None:
        client = _mock_client()
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), client=client)

        assert await provider.embed_single("hello") == [0.0, 0.0, 0.0]
        client.embeddings.create.assert_awaited_once_with(
            input=["hello"], model="text-embedding-3-small"
        )

    @pytest.mark.asyncio
    async def test_embed_batches_large_inputs(self, tmp_path: Path) -> None:
        client = _mock_client(dimension=1)
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), client=client)

        vectors = await provider.embed([f"t{i}" for i in range(2050)])

        assert len(vectors) == 2050
        assert client.embeddings.create.await_count == 2

    @pytest.mark.asyncio
    async def test_embed_empty(self, tmp_path: Path) -> None:
        client = _mock_client()
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), client=client)

        assert await provider.embed([]) == []
        client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self, tmp_path: Path) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock(side_effect=_api_error())
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), client=client)

        with pytest.raises(EmbeddingError) as exc_info:
            await provider.embed_single("hello")
        assert exc_info.value.provider_name == "openai_embedding"

    @pytest.mark.asyncio
    async def test_empty_response_raises(self, tmp_path: Path) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=MagicMock(data=[], usage=None))
        provider = OpenAIEmbeddingProvider(_settings(tmp_path), client=client)

        with pytest.raises(EmbeddingError, match="no vectors"):
            await provider.embed_single("hello")


# ======================================================================
# Nomic Embedding Provider
# ======================================================================


class TestNomicEmbeddingProvider:
    def test_defaults(self, tmp_path: Path) -> None:
        provider = NomicEmbeddingProvider(_settings(tmp_path, openai_api_key=""))

        assert provider.model == "nomic-embed-text"
        assert provider.get_dimension() == 768
        assert provider.get_provider_name() == "nomic_embedding"
        assert str(provider._client.base_url).startswith("http://localhost:11434/v1")

    @pytest.mark.asyncio
    async def test_embed_single(self, tmp_path: Path) -> None:
        client = _mock_client(dimension=2)
        provider = NomicEmbeddingProvider(_settings(tmp_path), model="mxbai-embed-large", client=client)

        assert await provider.embed_single("hello") == [0.0, 0.0]
        client.embeddings.create.assert_awaited_once_with(input=["hello"], model="mxbai-embed-large")

    @pytest.mark.asyncio
    async def test_embed_batches_of_512(self, tmp_path: Path) -> None:
        client = _mock_client(dimension=1)
        provider = NomicEmbeddingProvider(_settings(tmp_path), client=client)

        vectors = await provider.embed([f"t{i}" for i in range(1025)])

        assert len(vectors) == 1025
        assert client.embeddings.create.await_count == 3

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self, tmp_path: Path) -> None:
        client = MagicMock()
        client.embeddings.create = AsyncMock(side_effect=_api_error())
        provider = NomicEmbeddingProvider(_settings(tmp_path), client=client)

        with pytest.raises(EmbeddingError) as exc_info:
            await provider.embed(["hello"])
        assert exc_info.value.provider_name == "nomic_embedding"

    def test_is_available_when_ollama_answers(self, tmp_path: Path) -> None:
        provider = NomicEmbeddingProvider(_settings(tmp_path), client=_mock_client())
        with patch(
            "kbase.providers.embedding.nomic_embedding_provider.httpx.get",
            return_value=MagicMock(status_code=200),
        ) as mock_get:
            assert provider.is_available() is True
        mock_get.assert_called_once_with("http://localhost:11434/api/tags", timeout=3.0)

    def test_unavailable_when_ollama_down(self, tmp_path: Path) -> None:
        provider = NomicEmbeddingProvider(_settings(tmp_path), client=_mock_client())
        with patch(
            "kbase.providers.embedding.nomic_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert provider.is_available() is False

    def test_dimension_follows_pulled_model(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)

        assert NomicEmbeddingProvider(settings, model="mxbai-embed-large", client=_mock_client()).get_dimension() == 1024
        assert NomicEmbeddingProvider(settings, model="all-minilm:latest", client=_mock_client()).get_dimension() == 384
        assert NomicEmbeddingProvider(settings, model="custom-embedder", client=_mock_client()).get_dimension() == 768

    @pytest.mark.asyncio
    async def test_short_response_raises(self, tmp_path: Path) -> None:
        response = MagicMock()
        response.data = [MagicMock(embedding=[0.1])]
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=response)
        provider = NomicEmbeddingProvider(_settings(tmp_path), client=client)

        with pytest.raises(EmbeddingError, match="1 vectors for 2 chunks"):
            await provider.embed(["a", "b"])
