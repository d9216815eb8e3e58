"""Shared pytest fixtures for the kbase test suite.

Vectors and embeddings use the in-memory fakes from ``tests/fakes.py``;
metadata goes to a real SQLite file under ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from kbase.config.settings import Settings
from kbase.main import build_knowledge_service
from kbase.providers.blob_storage.local_file_storage import LocalFileStorageProvider
from kbase.providers.metadata.sqlite_metadata_store import SQLiteDocumentMetadataStore
from tests.fakes import (
    FakeBlobStorage,
    FakeEmbeddingProvider,
    FakeRemoteFetcher,
    FakeVectorStore,
    REMOTE_URL,
    make_settings,
)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore(collections=["docs"])


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def blob_storage() -> FakeBlobStorage:
    return FakeBlobStorage()


@pytest.fixture
def remote_fetcher() -> FakeRemoteFetcher:
    return FakeRemoteFetcher({REMOTE_URL: b"Fetched over HTTP."})


@pytest.fixture
async def metadata_store(tmp_path: Path) -> SQLiteDocumentMetadataStore:
    """An initialised SQLite metadata store in a temp directory."""
    store = SQLiteDocumentMetadataStore(db_path=tmp_path / "meta.db")
    await store.initialize()
    return store


@pytest.fixture
def components(
    settings: Settings,
    vector_store: FakeVectorStore,
    embedding_provider: FakeEmbeddingProvider,
    remote_fetcher: FakeRemoteFetcher,
    tmp_path: Path,
) -> dict[str, Any]:
    """Production wiring with in-memory vectors and embeddings.

    Blobs and metadata use the real local-disk and SQLite providers.  The
    metadata tables are created by whoever runs the components (app
    lifespan, CLI, or ``initialize_components``).
    """
    return build_knowledge_service(
        settings,
        vector_store=vector_store,
        embedding_provider=embedding_provider,
        blob_storage=LocalFileStorageProvider(base_dir=tmp_path / "blobs"),
        metadata_store=SQLiteDocumentMetadataStore(db_path=tmp_path / "meta.db"),
        remote_fetcher=remote_fetcher,
    )
