"""Utility modules for kbase.

- **errors** -- Domain exception hierarchy rooted at KnowledgeBaseError;
  each store / stage raises its own subclass so the coordinators can turn
  failures into per-file and per-chunk results.
- **concurrency** -- Semaphore-throttled gather and per-call timeouts.
- **logging** -- structlog setup with console output in development and
  JSON in production.
- **file_utils** -- Content-type guessing and inline upload decoding.
"""

from kbase.utils.concurrency import throttled_gather, with_timeout
from kbase.utils.errors import (
    BlobStorageError,
    CollectionNotFoundError,
    ConfigurationError,
    EmbeddingError,
    ExtractionError,
    KnowledgeBaseError,
    MetadataStoreError,
    RemoteFetchError,
    ValidationError,
    VectorStoreError,
)
from kbase.utils.logging import configure_logging, get_logger

__all__ = [
    "BlobStorageError",
    "CollectionNotFoundError",
    "ConfigurationError",
    "EmbeddingError",
    "ExtractionError",
    "KnowledgeBaseError",
    "MetadataStoreError",
    "RemoteFetchError",
    "ValidationError",
    "VectorStoreError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
    "with_timeout",
]
