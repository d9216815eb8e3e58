"""Abstract base class for the document metadata store.

Holds one :class:`~kbase.models.knowledge.DocumentMetadata` record per
ingested document.  Records are partitioned by ``(collection,
vector_store_provider)`` so switching vector backends never mixes data.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbase.models.knowledge import DocumentMetadata, KnowledgeFileFilter, PagedItems


# Concrete implementation: SQLiteDocumentMetadataStore (kbase/providers/metadata/)
class IDocumentMetadataStore(ABC):
    """Contract for durable document metadata persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indices.  Must be idempotent."""

    @abstractmethod
    async def save(self, record: DocumentMetadata) -> None:
        """Persist a new record.

        Raises
        ------
        kbase.utils.errors.MetadataStoreError
            If the write fails.
        """

    @abstractmethod
    async def get_paged(
        self,
        collection: str,
        vector_store_provider: str,
        filter: KnowledgeFileFilter,
    ) -> PagedItems[DocumentMetadata]:
        """Return one page of matching records and the total match count.

        Ordering must be stable across calls: ``create_date`` then
        ``file_id``.
        """

    @abstractmethod
    async def delete_one(self, collection: str, vector_store_provider: str, file_id: str) -> bool:
        """Delete a record.  Returns ``False`` if there was nothing to delete."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
