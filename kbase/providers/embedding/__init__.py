"""Embedding provider implementations.

Embeddings convert chunk text into numeric vectors that are stored in the
vector database alongside the chunk.

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims) or any
       model served by an OpenAI-compatible endpoint.  Requires an API key.
    2. NomicEmbeddingProvider  -- nomic-embed-text via Ollama (768 dims).
       Free and local, but requires a running Ollama server.

Which one a collection uses is decided by CollectionEmbeddingResolver.
"""

from kbase.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from kbase.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
