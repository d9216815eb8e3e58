"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Each knowledge-base collection maps to one Chroma collection using cosine
distance.  Embeddings are always computed by our own embedding providers
and passed in explicitly.  The chromadb client is synchronous, so every
client call runs in a worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# ChromaDB's bundled telemetry client is noisy and breaks on some installs.
os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")

import chromadb
import structlog
from chromadb.utils.embedding_functions import register_embedding_function

from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.utils.errors import VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

_ChromaScalar = str | int | float | bool


@register_embedding_function
class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that refuses to run.

    Keeps ChromaDB from downloading its default ONNX model when a
    collection is opened; every write here carries a pre-computed vector.
    Registered so collections persisted by an earlier process reopen.
    """

    def __init__(self) -> None:
        pass

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("kbase passes pre-computed embeddings to ChromaDB.")

    @staticmethod
    def name() -> str:
        return "kbase_precomputed"

    def get_config(self) -> dict[str, Any]:
        return {}

    @staticmethod
    def build_from_config(config: dict[str, Any]) -> _NoopEmbeddingFunction:
        return _NoopEmbeddingFunction()


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory for ChromaDB's on-disk storage.
    client:
        Optional pre-built client (e.g. ``chromadb.EphemeralClient()`` in
        tests).  Overrides *persist_directory*.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collections: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def collection_exists(self, collection: str) -> bool:
        try:
            names = await asyncio.to_thread(self._collection_names)
            return collection in names
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB list_collections failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def create_collection(self, collection: str, dimension: int) -> bool:
        """Create a cosine-distance collection; ``False`` if it already exists."""
        if await self.collection_exists(collection):
            return False
        try:
            self._collections[collection] = await asyncio.to_thread(
                self._client.create_collection,
                name=collection,
                metadata={"hnsw:space": "cosine", "dimension": dimension},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB create_collection '{collection}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_collection_created", collection=collection, dimension=dimension)
        return True

    async def upsert(
        self,
        collection: str,
        vector_id: str,
        vector: list[float],
        text: str,
        payload: dict[str, Any],
    ) -> bool:
        handle = await asyncio.to_thread(self._get_collection, collection)
        if handle is None:
            logger.warning("chromadb_upsert_missing_collection", collection=collection)
            return False

        # ChromaDB rejects empty metadata dicts.
        metadata = self._payload_to_metadata(payload)
        try:
            await asyncio.to_thread(
                handle.upsert,
                ids=[vector_id],
                embeddings=[vector],
                documents=[text],
                metadatas=[metadata] if metadata else None,
            )
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB upsert into '{collection}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return True

    async def delete_by_ids(self, collection: str, vector_ids: list[str]) -> int:
        ids = [i for i in dict.fromkeys(vector_ids) if i]
        if not ids:
            return 0

        handle = await asyncio.to_thread(self._get_collection, collection)
        if handle is None:
            logger.warning("chromadb_delete_missing_collection", collection=collection)
            return 0

        try:
            await asyncio.to_thread(handle.delete, ids=ids)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB delete from '{collection}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete_by_ids", collection=collection, count=len(ids))
        return len(ids)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB client answers a heartbeat."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _collection_names(self) -> set[str]:
        # Some chromadb releases return names, others Collection objects.
        return {
            c if isinstance(c, str) else c.name for c in self._client.list_collections()
        }

    def _get_collection(self, collection: str) -> Any | None:
        """Return a cached collection handle, or ``None`` if it does not exist."""
        if collection in self._collections:
            return self._collections[collection]
        try:
            if collection not in self._collection_names():
                return None
            try:
                handle = self._client.get_collection(
                    name=collection, embedding_function=_NoopEmbeddingFunction()
                )
            except ValueError:
                # Collection persisted with a different embedding function.
                handle = self._client.get_collection(name=collection)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB get_collection '{collection}' failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        self._collections[collection] = handle
        return handle

    @staticmethod
    def _payload_to_metadata(payload: dict[str, Any]) -> dict[str, _ChromaScalar]:
        """Convert a payload to ChromaDB metadata.

        ChromaDB metadata values must be str, int, float, or bool.  ``None``
        values are dropped, lists become comma-separated strings and
        anything else is stringified.
        """
        meta: dict[str, _ChromaScalar] = {}
        for key, value in payload.items():
            if value is None:
                continue
            if isinstance(value, (str, int, float, bool)):
                meta[key] = value
            elif isinstance(value, (list, tuple, set)):
                meta[key] = ",".join(str(v) for v in value)
            else:
                meta[key] = str(value)
        return meta
