"""Knowledge-base document pipeline.

Stages of a batch upload::

    ExternalFile -> resolve bytes (inline data or URL)
                 -> ContentExtractor / TextChunker   (bytes -> chunks)
                 -> DocumentWriter                   (blob -> vectors -> metadata)
                    -> VectorUpsertCoordinator       (embed + upsert per chunk)

DocumentDeletionCoordinator and PaginatedDocumentLister work from the
metadata records the writer leaves behind.  KnowledgeService is the facade
used by the API and the CLI.
"""

from kbase.services.knowledge.chunker import TextChunker
from kbase.services.knowledge.content_extractor import ContentExtractor
from kbase.services.knowledge.deletion_coordinator import DocumentDeletionCoordinator
from kbase.services.knowledge.document_lister import PaginatedDocumentLister
from kbase.services.knowledge.document_writer import DocumentWriter
from kbase.services.knowledge.embedding_resolver import CollectionEmbeddingResolver
from kbase.services.knowledge.knowledge_service import KnowledgeService
from kbase.services.knowledge.upload_orchestrator import DocumentUploadOrchestrator
from kbase.services.knowledge.vector_upsert import VectorUpsertCoordinator

__all__ = [
    "CollectionEmbeddingResolver",
    "ContentExtractor",
    "DocumentDeletionCoordinator",
    "DocumentUploadOrchestrator",
    "DocumentWriter",
    "KnowledgeService",
    "PaginatedDocumentLister",
    "TextChunker",
    "VectorUpsertCoordinator",
]
