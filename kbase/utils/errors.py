"""Custom exception hierarchy for kbase.

All application exceptions inherit from :class:`KnowledgeBaseError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "chromadb", "openai_embedding", "local_file_storage")
caused the failure.

The hierarchy follows the stores and stages of the ingestion pipeline:

    KnowledgeBaseError  (base -- catch-all for any kbase error)
    +-- ValidationError          (bad arguments, rejected before any I/O)
    +-- CollectionNotFoundError  (target vector collection does not exist)
    +-- ExtractionError          (unsupported / undecodable document content)
    +-- BlobStorageError         (raw document bytes could not be stored/read)
    +-- RemoteFetchError         (file URL could not be downloaded)
    +-- EmbeddingError           (embedding provider call failed)
    +-- VectorStoreError         (vector database call failed)
    +-- MetadataStoreError       (document metadata persistence failed)
    +-- ConfigurationError       (startup / missing config)

The ingestion and deletion coordinators catch these at their per-file and
per-chunk boundaries and turn them into failure entries; they are raised
out of the providers so that every failure carries a readable reason.
"""


class KnowledgeBaseError(Exception):
    """Base exception for all kbase errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[chromadb] Collection upsert failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request-level errors
# ---------------------------------------------------------------------------

class ValidationError(KnowledgeBaseError):
    """Raised when a request is rejected before any external call is made."""

    def __init__(
        self,
        message: str = "Invalid request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CollectionNotFoundError(KnowledgeBaseError):
    """Raised when the target vector-store collection does not exist."""

    def __init__(
        self,
        message: str = "Vector collection not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Document-level errors
# ---------------------------------------------------------------------------

class ExtractionError(KnowledgeBaseError):
    """Raised when document content cannot be decoded into text.

    The content extractor logs this and yields zero chunks instead of
    propagating it.
    """

    def __init__(
        self,
        message: str = "Content extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class BlobStorageError(KnowledgeBaseError):
    """Raised when the raw document bytes cannot be written, read or removed."""

    def __init__(
        self,
        message: str = "Blob storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RemoteFetchError(KnowledgeBaseError):
    """Raised when a document referenced by URL cannot be downloaded."""

    def __init__(
        self,
        message: str = "Remote file fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Chunk-level errors
# ---------------------------------------------------------------------------

class EmbeddingError(KnowledgeBaseError):
    """Raised when the embedding provider fails for a piece of text."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorStoreError(KnowledgeBaseError):
    """Raised when a vector-database operation fails."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MetadataStoreError(KnowledgeBaseError):
    """Raised when the document metadata store cannot be read or written.

    A failure after a successful vector write leaves orphaned vector
    entries; the upload orchestrator compensates on a best-effort basis.
    """

    def __init__(
        self,
        message: str = "Metadata store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigurationError(KnowledgeBaseError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
