"""Embeds chunks and writes them to the vector store, one entry per chunk.

Each chunk is embedded with the collection's embedding provider, given a
fresh ``uuid4`` id and upserted with a copy of the document payload.  A
chunk whose embedding fails, whose upsert returns ``False`` or raises, or
whose call times out is dropped; its siblings are unaffected.  The
returned ids are exactly the entries that were stored, in chunk order.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from kbase.interfaces.embedding_provider import IEmbeddingProvider
from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.services.knowledge.embedding_resolver import CollectionEmbeddingResolver
from kbase.utils.concurrency import throttled_gather, with_timeout

logger = structlog.get_logger(logger_name=__name__)


class VectorUpsertCoordinator:
    """Per-chunk embed + upsert with chunk-level failure isolation.

    Parameters
    ----------
    vector_store:
        Target vector database.
    embedding_resolver:
        Chooses the embedding provider for each collection.
    concurrency:
        Maximum chunks processed at once (1 = sequential).
    timeout:
        Seconds allowed for each embedding call and each upsert call.
    """

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        embedding_resolver: CollectionEmbeddingResolver,
        concurrency: int = 1,
        timeout: float | None = None,
    ) -> None:
        self._vector_store = vector_store
        self._resolver = embedding_resolver
        self._concurrency = concurrency
        self._timeout = timeout

    async def upsert(
        self,
        collection: str,
        chunks: list[str],
        payload: Mapping[str, Any],
    ) -> list[str]:
        """Store *chunks* in *collection* and return the ids that were written."""
        if not chunks:
            return []

        embedder = self._resolver.resolve(collection)
        results = await throttled_gather(
            [
                self._upsert_chunk(collection, embedder, index, chunk, payload)
                for index, chunk in enumerate(chunks)
            ],
            limit=self._concurrency,
        )
        vector_ids = [r for r in results if isinstance(r, str)]

        logger.info(
            "vector_upsert_complete",
            collection=collection,
            chunks=len(chunks),
            stored=len(vector_ids),
            dropped=len(chunks) - len(vector_ids),
        )
        return vector_ids

    async def _upsert_chunk(
        self,
        collection: str,
        embedder: IEmbeddingProvider,
        index: int,
        chunk: str,
        payload: Mapping[str, Any],
    ) -> str | None:
        try:
            vector = await with_timeout(embedder.embed_single(chunk), self._timeout)
            vector_id = str(uuid.uuid4())
            stored = await with_timeout(
                self._vector_store.upsert(collection, vector_id, vector, chunk, dict(payload)),
                self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "vector_chunk_timeout",
                collection=collection,
                chunk_index=index,
                timeout=self._timeout,
            )
            return None
        except Exception as exc:
            logger.warning(
                "vector_chunk_failed",
                collection=collection,
                chunk_index=index,
                error=str(exc),
            )
            return None

        if not stored:
            logger.warning("vector_chunk_rejected", collection=collection, chunk_index=index)
            return None
        return vector_id
