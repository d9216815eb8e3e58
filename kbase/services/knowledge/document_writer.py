"""Persists one document across the blob, vector and metadata stores.

This is the shared tail of both ingestion paths (batch upload and direct
content import):

    blob save --> payload build --> vector upsert --> metadata record

The stores are written in that order without a cross-store transaction.
When a later step fails, earlier writes are undone on a best-effort basis:

* zero vector ids stored -> the blob is deleted
* metadata write fails   -> the stored vector ids and the blob are deleted

Compensation failures are logged and never change the reported outcome,
which is always a failed :class:`ItemResult` in these cases.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from kbase.interfaces.blob_storage_provider import IBlobStorageProvider
from kbase.interfaces.metadata_store_provider import IDocumentMetadataStore
from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.models.knowledge import DocMetaRefData, DocumentMetadata, ItemResult
from kbase.models.payload import PayloadBuilder
from kbase.services.knowledge.vector_upsert import VectorUpsertCoordinator
from kbase.utils.concurrency import with_timeout

logger = structlog.get_logger(logger_name=__name__)


def describe_error(exc: BaseException) -> str:
    """Return a readable reason for *exc*, even when its message is empty."""
    return str(exc) or type(exc).__name__


class DocumentWriter:
    """Writes a chunked document to all three stores.

    Parameters
    ----------
    blob_storage:
        Store for the document's original bytes.
    vector_store:
        Vector database; used directly only to undo vector writes.
    vector_upsert:
        Embeds and upserts the chunks.
    metadata_store:
        Durable per-document records.
    timeout:
        Seconds allowed for each blob and metadata call.
    """

    def __init__(
        self,
        blob_storage: IBlobStorageProvider,
        vector_store: IVectorStoreProvider,
        vector_upsert: VectorUpsertCoordinator,
        metadata_store: IDocumentMetadataStore,
        timeout: float | None = None,
    ) -> None:
        self._blob_storage = blob_storage
        self._vector_store = vector_store
        self._vector_upsert = vector_upsert
        self._metadata_store = metadata_store
        self._timeout = timeout

    @property
    def vector_store_provider(self) -> str:
        return self._vector_store.get_provider_name()

    async def write(
        self,
        collection: str,
        file_name: str,
        file_source: str,
        content_type: str,
        data: bytes,
        chunks: list[str],
        user_id: str = "",
        file_url: str | None = None,
        ref_data: DocMetaRefData | None = None,
        extra_payload: Mapping[str, Any] | None = None,
    ) -> ItemResult:
        provider = self.vector_store_provider
        file_id = str(uuid.uuid4())
        log = logger.bind(collection=collection, file_name=file_name, file_id=file_id)

        try:
            saved = await with_timeout(
                self._blob_storage.save(collection, provider, file_id, file_name, data),
                self._timeout,
            )
        except Exception as exc:
            log.warning("knowledge_blob_save_failed", error=describe_error(exc))
            return ItemResult.failed(file_name, f"blob storage failed: {describe_error(exc)}", file_id)
        if not saved:
            log.warning("knowledge_blob_save_failed", error="save returned False")
            return ItemResult.failed(file_name, "blob storage rejected the file", file_id)

        payload = (
            PayloadBuilder()
            .with_extra(extra_payload)
            .for_file(file_id, file_name, file_source, file_url=file_url)
            .build()
        )

        try:
            vector_ids = await self._vector_upsert.upsert(collection, chunks, payload)
        except Exception as exc:
            log.warning("knowledge_vector_upsert_failed", error=describe_error(exc))
            vector_ids = []

        if not vector_ids:
            await self._discard_blob(collection, provider, file_id)
            reason = "no content chunks were stored" if chunks else "no text could be extracted"
            return ItemResult.failed(file_name, reason, file_id)

        record = DocumentMetadata(
            collection=collection,
            file_id=file_id,
            file_name=file_name,
            file_source=file_source,
            content_type=content_type,
            vector_store_provider=provider,
            vector_data_ids=vector_ids,
            ref_data=ref_data,
            create_user_id=user_id,
        )
        try:
            await with_timeout(self._metadata_store.save(record), self._timeout)
        except Exception as exc:
            log.error("knowledge_metadata_save_failed", error=describe_error(exc))
            await self._discard_vectors(collection, file_id, vector_ids)
            await self._discard_blob(collection, provider, file_id)
            return ItemResult.failed(
                file_name, f"metadata write failed: {describe_error(exc)}", file_id
            )

        log.info("knowledge_file_stored", chunks=len(chunks), vectors=len(vector_ids))
        return ItemResult.succeeded(file_name, file_id)

    # ------------------------------------------------------------------
    # Compensation
    # ------------------------------------------------------------------

    async def _discard_blob(self, collection: str, provider: str, file_id: str) -> None:
        try:
            await with_timeout(
                self._blob_storage.delete(collection, provider, file_id), self._timeout
            )
        except Exception as exc:
            logger.warning(
                "knowledge_blob_cleanup_failed",
                collection=collection,
                file_id=file_id,
                error=describe_error(exc),
            )

    async def _discard_vectors(self, collection: str, file_id: str, vector_ids: list[str]) -> None:
        try:
            await with_timeout(
                self._vector_store.delete_by_ids(collection, vector_ids), self._timeout
            )
        except Exception as exc:
            logger.warning(
                "knowledge_orphaned_vectors",
                collection=collection,
                file_id=file_id,
                vector_ids=vector_ids,
                error=describe_error(exc),
            )
