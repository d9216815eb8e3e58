"""Facade over the knowledge-base ingestion, deletion and listing components.

The API routes, the CLI and ``kbase/main.py`` talk to this class only.
Every collaborator is injected; see ``kbase.main.build_knowledge_service``
for the production wiring.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.models.knowledge import (
    ChunkOptions,
    DocMetaRefData,
    ExternalFile,
    FileBinaryData,
    KnowledgeFile,
    KnowledgeFileFilter,
    PagedItems,
    UploadKnowledgeResult,
)
from kbase.services.knowledge.deletion_coordinator import DocumentDeletionCoordinator
from kbase.services.knowledge.document_lister import PaginatedDocumentLister
from kbase.services.knowledge.embedding_resolver import CollectionEmbeddingResolver
from kbase.services.knowledge.upload_orchestrator import DocumentUploadOrchestrator
from kbase.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)


class KnowledgeService:
    """Single entry point for knowledge-base document operations."""

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        embedding_resolver: CollectionEmbeddingResolver,
        uploader: DocumentUploadOrchestrator,
        deleter: DocumentDeletionCoordinator,
        lister: PaginatedDocumentLister,
    ) -> None:
        self._vector_store = vector_store
        self._embedding_resolver = embedding_resolver
        self._uploader = uploader
        self._deleter = deleter
        self._lister = lister

    @property
    def vector_store_provider(self) -> str:
        return self._vector_store.get_provider_name()

    def provider_names(self) -> dict[str, str]:
        """Names of the vector store and default embedding provider, for health checks."""
        return {
            "vector_store": self._vector_store.get_provider_name(),
            "embedding": self._embedding_resolver.default_provider.get_provider_name(),
        }

    # -- Collections ---------------------------------------------------

    async def create_collection(self, collection: str, dimension: int | None = None) -> bool:
        """Create a vector collection sized for its bound embedding model.

        Returns ``False`` if the collection already exists.
        """
        if not collection or not collection.strip():
            raise ValidationError(message="Collection name must not be empty")
        size = dimension or self._embedding_resolver.resolve(collection).get_dimension()
        created = await self._vector_store.create_collection(collection, size)
        logger.info("knowledge_collection_create", collection=collection, dimension=size, created=created)
        return created

    async def collection_exists(self, collection: str) -> bool:
        if not collection or not collection.strip():
            return False
        return await self._vector_store.collection_exists(collection)

    # -- Ingestion -----------------------------------------------------

    async def upload_documents(
        self,
        collection: str,
        files: Sequence[ExternalFile],
        options: ChunkOptions | None = None,
        user_id: str | None = None,
    ) -> UploadKnowledgeResult:
        return await self._uploader.upload_batch(collection, files, options, user_id=user_id)

    async def import_document_content(
        self,
        collection: str,
        file_name: str,
        file_source: str,
        contents: Sequence[str],
        ref_data: DocMetaRefData | None = None,
        payload: Mapping[str, Any] | None = None,
        user_id: str | None = None,
    ) -> bool:
        return await self._uploader.import_content(
            collection,
            file_name,
            file_source,
            contents,
            ref_data=ref_data,
            payload=payload,
            user_id=user_id,
        )

    # -- Deletion ------------------------------------------------------

    async def delete_document(self, collection: str, file_id: str) -> bool:
        return await self._deleter.delete_document(collection, file_id)

    async def delete_documents(self, collection: str, filter: KnowledgeFileFilter) -> bool:
        return await self._deleter.delete_documents(collection, filter)

    # -- Listing -------------------------------------------------------

    async def get_paged_documents(
        self,
        collection: str,
        filter: KnowledgeFileFilter | None = None,
    ) -> PagedItems[KnowledgeFile]:
        return await self._lister.list_documents(collection, filter)

    async def get_document_binary_data(self, collection: str, file_id: str) -> FileBinaryData:
        return await self._lister.get_binary_data(collection, file_id)
