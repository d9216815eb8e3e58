"""Removes documents from all three stores.

A single delete touches the stores in a fixed order: blob first
(unconditionally), then exactly the vector ids recorded for the document,
then the metadata record.  Deleting a document that does not exist is a
successful no-op, so deletes can be retried freely.

Bulk delete walks the filtered result from the head.  Each round re-reads
the first ``size + failures`` matches, skips documents that already failed
and deletes the rest; it stops once a round finds nothing new or once as
many documents as initially matched have been attempted.  Deleting from
the head means no page offset is ever invalidated by the deletions.
"""

from __future__ import annotations

import structlog

from kbase.interfaces.blob_storage_provider import IBlobStorageProvider
from kbase.interfaces.metadata_store_provider import IDocumentMetadataStore
from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.models.knowledge import KnowledgeFileFilter
from kbase.services.knowledge.document_writer import describe_error
from kbase.utils.concurrency import with_timeout

logger = structlog.get_logger(logger_name=__name__)


class DocumentDeletionCoordinator:
    """Single and filtered bulk document deletion."""

    def __init__(
        self,
        metadata_store: IDocumentMetadataStore,
        blob_storage: IBlobStorageProvider,
        vector_store: IVectorStoreProvider,
        timeout: float | None = None,
    ) -> None:
        self._metadata_store = metadata_store
        self._blob_storage = blob_storage
        self._vector_store = vector_store
        self._timeout = timeout

    async def delete_document(self, collection: str, file_id: str) -> bool:
        """Delete one document.  ``False`` only if a store call failed."""
        if not collection or not collection.strip():
            return False

        provider = self._vector_store.get_provider_name()
        try:
            page = await with_timeout(
                self._metadata_store.get_paged(
                    collection,
                    provider,
                    KnowledgeFileFilter(page=1, size=1, file_ids=[file_id]),
                ),
                self._timeout,
            )
            await with_timeout(
                self._blob_storage.delete(collection, provider, file_id), self._timeout
            )

            record = page.items[0] if page.items else None
            removed_vectors = 0
            if record is not None and record.vector_data_ids:
                removed_vectors = await with_timeout(
                    self._vector_store.delete_by_ids(collection, record.vector_data_ids),
                    self._timeout,
                )

            await with_timeout(
                self._metadata_store.delete_one(collection, provider, file_id), self._timeout
            )
        except Exception as exc:
            logger.warning(
                "knowledge_delete_failed",
                collection=collection,
                file_id=file_id,
                error=describe_error(exc),
            )
            return False

        logger.info(
            "knowledge_document_deleted",
            collection=collection,
            file_id=file_id,
            found=record is not None,
            vectors=removed_vectors,
        )
        return True

    async def delete_documents(self, collection: str, filter: KnowledgeFileFilter) -> bool:
        """Delete every document matching *filter*.

        Returns ``False`` if nothing matched, ``True`` otherwise, whatever
        the individual outcomes.  Per-document failures are logged and
        skipped in later rounds.
        """
        if not collection or not collection.strip():
            return False

        provider = self._vector_store.get_provider_name()
        head = filter.model_copy(update={"page": 1})
        try:
            page = await with_timeout(
                self._metadata_store.get_paged(collection, provider, head), self._timeout
            )
        except Exception as exc:
            logger.warning(
                "knowledge_bulk_delete_query_failed",
                collection=collection,
                error=describe_error(exc),
            )
            return False

        total = page.count
        if total == 0:
            return False

        failed: set[str] = set()
        attempted = 0
        rounds = 0
        while attempted < total:
            candidates = [r.file_id for r in page.items if r.file_id not in failed]
            if not candidates:
                break

            rounds += 1
            for file_id in candidates:
                attempted += 1
                if not await self.delete_document(collection, file_id):
                    failed.add(file_id)

            if attempted >= total:
                break
            try:
                page = await with_timeout(
                    self._metadata_store.get_paged(
                        collection,
                        provider,
                        head.model_copy(update={"size": filter.size + len(failed)}),
                    ),
                    self._timeout,
                )
            except Exception as exc:
                logger.warning(
                    "knowledge_bulk_delete_query_failed",
                    collection=collection,
                    error=describe_error(exc),
                )
                break

        logger.info(
            "knowledge_bulk_delete_complete",
            collection=collection,
            matched=total,
            attempted=attempted,
            failed=len(failed),
            rounds=rounds,
        )
        return True
