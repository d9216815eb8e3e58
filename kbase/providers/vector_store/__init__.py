"""Vector store provider implementations.

ChromaDB is the bundled implementation.  To use another engine, implement
IVectorStoreProvider and select it in ``kbase/main.py``; the provider name
is recorded on every document metadata record.
"""

from kbase.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
