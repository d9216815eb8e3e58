"""Read-only views over ingested documents.

Listing reads the metadata store only; it never touches the vector store.
"""

from __future__ import annotations

import structlog

from kbase.interfaces.blob_storage_provider import IBlobStorageProvider
from kbase.interfaces.metadata_store_provider import IDocumentMetadataStore
from kbase.models.knowledge import (
    FileBinaryData,
    KnowledgeFile,
    KnowledgeFileFilter,
    PagedItems,
)
from kbase.utils.file_utils import DEFAULT_CONTENT_TYPE, get_file_extension

logger = structlog.get_logger(logger_name=__name__)


class PaginatedDocumentLister:
    """Pages through document metadata and serves stored document bytes."""

    def __init__(
        self,
        metadata_store: IDocumentMetadataStore,
        blob_storage: IBlobStorageProvider,
        vector_store_provider: str,
    ) -> None:
        self._metadata_store = metadata_store
        self._blob_storage = blob_storage
        self._vector_store_provider = vector_store_provider

    async def list_documents(
        self,
        collection: str,
        filter: KnowledgeFileFilter | None = None,
    ) -> PagedItems[KnowledgeFile]:
        if not collection or not collection.strip():
            return PagedItems[KnowledgeFile]()

        provider = self._vector_store_provider
        page = await self._metadata_store.get_paged(
            collection, provider, filter or KnowledgeFileFilter()
        )
        files = [
            KnowledgeFile(
                file_id=record.file_id,
                file_name=record.file_name,
                file_source=record.file_source,
                file_extension=get_file_extension(record.file_name),
                content_type=record.content_type,
                file_url=self._blob_storage.get_url(
                    collection, provider, record.file_id, record.file_name
                ),
                ref_data=record.ref_data,
            )
            for record in page.items
        ]
        return PagedItems[KnowledgeFile](items=files, count=page.count)

    async def get_binary_data(self, collection: str, file_id: str) -> FileBinaryData:
        """Return the document's bytes, or the placeholder if it is unknown."""
        if not collection or not collection.strip():
            return FileBinaryData.placeholder()

        provider = self._vector_store_provider
        page = await self._metadata_store.get_paged(
            collection, provider, KnowledgeFileFilter(page=1, size=1, file_ids=[file_id])
        )
        if not page.items:
            logger.info("knowledge_binary_not_found", collection=collection, file_id=file_id)
            return FileBinaryData.placeholder()

        record = page.items[0]
        data = await self._blob_storage.get_binary(collection, provider, file_id, record.file_name)
        return FileBinaryData(
            file_name=record.file_name,
            content_type=record.content_type or DEFAULT_CONTENT_TYPE,
            data=data,
        )
