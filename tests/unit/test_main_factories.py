"""Unit tests for factory functions in kbase/main.py.

Tests embedding provider selection, vector store selection, default chunk
options, build_knowledge_service assembly and the create_app factory.
No network calls or real API keys are required.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI

from kbase.main import (
    build_embedding_provider,
    build_knowledge_service,
    build_vector_store,
    create_app,
    default_chunk_options,
)
from kbase.models.knowledge import ChunkOptions, SplitBy
from kbase.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from kbase.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from kbase.providers.remote.http_file_provider import HttpFileProvider
from kbase.providers.vector_store.chromadb_provider import ChromaDBProvider
from kbase.services.knowledge.knowledge_service import KnowledgeService
from kbase.utils.errors import ConfigurationError
from tests.fakes import FakeEmbeddingProvider, FakeVectorStore, make_settings


# ======================================================================
# build_embedding_provider
# ======================================================================


class TestBuildEmbeddingProvider:
    """Provider priority: OpenAI when a key is set, Ollama otherwise."""

    def test_openai_when_key_set(self, tmp_path: Path) -> None:
        provider = build_embedding_provider(make_settings(tmp_path, openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.model == "text-embedding-3-small"

    def test_openai_model_override(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path, openai_api_key="sk-test")
        provider = build_embedding_provider(settings, model="text-embedding-3-large")
        assert provider.get_dimension() == 3072

    def test_nomic_without_key(self, tmp_path: Path) -> None:
        provider = build_embedding_provider(make_settings(tmp_path))
        assert isinstance(provider, NomicEmbeddingProvider)
        assert provider.get_provider_name() == "nomic_embedding"


# ======================================================================
# build_vector_store / default_chunk_options
# ======================================================================


class TestBuildVectorStore:
    def test_chromadb(self, tmp_path: Path) -> None:
        store = build_vector_store(make_settings(tmp_path, vector_db_provider=" ChromaDB "))
        assert isinstance(store, ChromaDBProvider)

    def test_unsupported_provider(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="qdrant"):
            build_vector_store(make_settings(tmp_path, vector_db_provider="qdrant"))


class TestDefaultChunkOptions:
    def test_from_settings(self, tmp_path: Path) -> None:
        settings = make_settings(
            tmp_path, default_chunk_size=200, default_chunk_overlap=20, default_split_by="word"
        )
        assert default_chunk_options(settings) == ChunkOptions(
            max_chunk_size=200, overlap=20, split_by=SplitBy.WORD
        )

    def test_unknown_split_by(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="DEFAULT_SPLIT_BY"):
            default_chunk_options(make_settings(tmp_path, default_split_by="chapter"))

    def test_overlap_not_smaller_than_size(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path, default_chunk_size=10, default_chunk_overlap=10)
        with pytest.raises(ConfigurationError, match="Invalid default chunk options"):
            default_chunk_options(settings)


# ======================================================================
# build_knowledge_service
# ======================================================================


class TestBuildKnowledgeService:
    def test_returns_expected_keys(self, tmp_path: Path) -> None:
        components = build_knowledge_service(
            make_settings(tmp_path),
            vector_store=FakeVectorStore(),
            embedding_provider=FakeEmbeddingProvider(),
        )

        assert set(components) == {
            "knowledge_service",
            "vector_store",
            "blob_storage",
            "metadata_store",
            "remote_fetcher",
        }
        assert isinstance(components["knowledge_service"], KnowledgeService)
        assert isinstance(components["remote_fetcher"], HttpFileProvider)
        assert components["knowledge_service"].provider_names() == {
            "vector_store": "memory",
            "embedding": "fake_embedding",
        }

    def test_injected_providers_used(self, tmp_path: Path) -> None:
        store = FakeVectorStore()
        components = build_knowledge_service(
            make_settings(tmp_path),
            vector_store=store,
            embedding_provider=FakeEmbeddingProvider(),
        )
        assert components["vector_store"] is store

    @pytest.mark.asyncio
    async def test_collection_binding_sizes_collection(self, tmp_path: Path) -> None:
        settings = make_settings(
            tmp_path,
            openai_api_key="sk-test",
            collection_embedding_models={"legal": "text-embedding-3-large"},
        )
        store = FakeVectorStore()
        service = build_knowledge_service(settings, vector_store=store)["knowledge_service"]

        assert await service.create_collection("legal") is True
        assert await service.create_collection("general") is True

        assert store.dimensions == {"legal": 3072, "general": 1536}


# ======================================================================
# create_app
# ======================================================================


class TestCreateApp:
    def test_returns_fastapi_instance(self, tmp_path: Path) -> None:
        app = create_app(make_settings(tmp_path))
        assert isinstance(app, FastAPI)
        assert app.title == "kbase API"
        assert app.version == "0.1.0"

    def test_app_has_knowledge_routes(self, tmp_path: Path) -> None:
        app = create_app(make_settings(tmp_path))
        paths = {route.path for route in app.routes}

        assert "/api/v1/knowledge/health" in paths
        assert "/api/v1/knowledge/{collection}/documents/upload" in paths
        assert "/api/v1/knowledge/{collection}/documents/{file_id}/file" in paths
