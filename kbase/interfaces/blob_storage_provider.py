"""Abstract base class for raw document (blob) storage.

Every ingested document keeps its original bytes so it can be downloaded
again later.  Blobs are addressed by ``(collection, vector_store_provider,
file_id)``; the file name is kept for display and content-disposition.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: LocalFileStorageProvider (kbase/providers/blob_storage/)
class IBlobStorageProvider(ABC):
    """Contract for the store holding original document bytes."""

    @abstractmethod
    async def save(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
        data: bytes,
    ) -> bool:
        """Persist *data* for the document.

        Returns
        -------
        bool
            ``True`` if the bytes were written.  The upload orchestrator
            fails the file (and skips the vector upsert) on ``False``.
        """

    @abstractmethod
    async def delete(self, collection: str, vector_store_provider: str, file_id: str) -> None:
        """Remove the document's blob.  Deleting a missing blob is a no-op."""

    @abstractmethod
    def get_url(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
    ) -> str:
        """Return a display / download URL for the document."""

    @abstractmethod
    async def get_binary(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
    ) -> bytes:
        """Return the stored bytes, or ``b""`` if the blob does not exist."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this storage backend."""
