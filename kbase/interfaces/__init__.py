"""Public interface definitions for all external collaborators.

The ingestion pipeline talks to blob storage, the vector database, the
embedding model, the metadata store and remote URLs only through the
abstract base classes in this package.  Concrete adapters live in
``kbase/providers/`` and are injected by ``kbase/main.py``; tests inject
in-memory fakes.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations
    ---------------------------------------------------------------
    IBlobStorageProvider       ->  LocalFileStorageProvider
    IVectorStoreProvider       ->  ChromaDBProvider
    IEmbeddingProvider         ->  OpenAIEmbeddingProvider,
                                   NomicEmbeddingProvider
    IDocumentMetadataStore     ->  SQLiteDocumentMetadataStore
    IRemoteFileProvider        ->  HttpFileProvider
"""

from kbase.interfaces.blob_storage_provider import IBlobStorageProvider
from kbase.interfaces.embedding_provider import IEmbeddingProvider
from kbase.interfaces.metadata_store_provider import IDocumentMetadataStore
from kbase.interfaces.remote_file_provider import IRemoteFileProvider
from kbase.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IBlobStorageProvider",
    "IDocumentMetadataStore",
    "IEmbeddingProvider",
    "IRemoteFileProvider",
    "IVectorStoreProvider",
]
