"""Abstract base class for vector-store service providers.

Defines the contract the ingestion pipeline needs from a vector database:
check that a collection exists, write one embedded chunk at a time under a
caller-generated id, and delete entries by id.  Implementations may wrap
ChromaDB, Qdrant, Milvus or any other engine.  Similarity search is not
part of this contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementation: ChromaDBProvider (kbase/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for the vector database behind a knowledge base.

    Collections are named partitions; every method takes the collection
    explicitly so one provider instance serves all knowledge bases.
    """

    @abstractmethod
    async def collection_exists(self, collection: str) -> bool:
        """Return ``True`` if *collection* exists in the vector store."""

    @abstractmethod
    async def create_collection(self, collection: str, dimension: int) -> bool:
        """Create *collection* for vectors of length *dimension*.

        Returns
        -------
        bool
            ``True`` if the collection was created, ``False`` if it already
            existed.
        """

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        vector_id: str,
        vector: list[float],
        text: str,
        payload: dict[str, Any],
    ) -> bool:
        """Insert or replace a single entry.

        Parameters
        ----------
        collection:
            Target collection; must already exist.
        vector_id:
            Caller-generated unique id (UUID string).
        vector:
            The chunk's embedding.
        text:
            The chunk text, stored alongside the vector.
        payload:
            Scalar metadata attached to the entry.

        Returns
        -------
        bool
            ``True`` if the entry was stored.  ``False`` signals a rejected
            write that is not exceptional (e.g. the collection vanished).

        Raises
        ------
        kbase.utils.errors.VectorStoreError
            If the backend call fails.
        """

    @abstractmethod
    async def delete_by_ids(self, collection: str, vector_ids: list[str]) -> int:
        """Delete exactly the entries named by *vector_ids*.

        Ids that do not exist are ignored.  Never scans the collection.

        Returns
        -------
        int
            Number of ids submitted for deletion.

        Raises
        ------
        kbase.utils.errors.VectorStoreError
            If the backend call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the identifier recorded as ``vector_store_provider``.

        Example return values: ``"chromadb"``, ``"qdrant"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
