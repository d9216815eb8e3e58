"""Ollama embedding provider, used when no OpenAI key is configured.

Ollama serves an OpenAI-compatible ``/v1/embeddings`` route, so the
``openai`` async client is reused with a dummy key.  ``nomic-embed-text``
is the default model; a collection bound to another pulled model (see
``COLLECTION_EMBEDDING_MODELS``) gets its own instance.
"""

from __future__ import annotations

from typing import Any

import httpx
import openai
import structlog

from kbase.config.settings import Settings
from kbase.interfaces.embedding_provider import IEmbeddingProvider
from kbase.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "nomic-embed-text"
_BATCH_LIMIT = 512
_HEALTH_TIMEOUT = 3.0

# Output sizes of common Ollama embedding models; collections are created
# with these so the vector store accepts the vectors.
_MODEL_DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "snowflake-arctic-embed": 1024,
    "bge-m3": 1024,
    "all-minilm": 384,
}


class NomicEmbeddingProvider(IEmbeddingProvider):
    """Embeds chunks through a local Ollama server."""

    def __init__(
        self,
        settings: Settings,
        model: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = client or openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",
        )
        self._model = model or _DEFAULT_MODEL
        # Tags such as "nomic-embed-text:latest" share the base model's size.
        self._dimension = _MODEL_DIMENSIONS.get(self._model.split(":", 1)[0], 768)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), _BATCH_LIMIT):
            batch = texts[start : start + _BATCH_LIMIT]
            try:
                response = await self._client.embeddings.create(input=batch, model=self._model)
            except openai.APIError as exc:
                raise EmbeddingError(
                    message=f"Ollama embeddings failed for model '{self._model}': {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            if len(response.data) != len(batch):
                raise EmbeddingError(
                    message=(
                        f"Ollama returned {len(response.data)} vectors for {len(batch)} chunks"
                    ),
                    provider_name=self.get_provider_name(),
                )
            vectors.extend(item.embedding for item in response.data)

        logger.debug("ollama_embedding_done", model=self._model, texts=len(texts))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        if not result:
            raise EmbeddingError(
                message="Ollama returned no vectors",
                provider_name=self.get_provider_name(),
            )
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    @property
    def model(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """``True`` if the Ollama server answers its model listing."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=_HEALTH_TIMEOUT)
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
        return response.status_code == 200
