"""kbase FastAPI application entry point.

Wires providers, services and routes together by constructor injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  ``build_knowledge_service`` is also used by the CLI to
run the same pipeline without the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from kbase.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from kbase.api.routes import router as knowledge_router
from kbase.config.loader import load_config
from kbase.config.settings import Settings
from kbase.interfaces.blob_storage_provider import IBlobStorageProvider
from kbase.interfaces.embedding_provider import IEmbeddingProvider
from kbase.interfaces.metadata_store_provider import IDocumentMetadataStore
from kbase.interfaces.remote_file_provider import IRemoteFileProvider
from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.models.knowledge import ChunkOptions, SplitBy
from kbase.providers.blob_storage.local_file_storage import LocalFileStorageProvider
from kbase.providers.metadata.sqlite_metadata_store import SQLiteDocumentMetadataStore
from kbase.providers.remote.http_file_provider import HttpFileProvider
from kbase.services.knowledge.content_extractor import ContentExtractor
from kbase.services.knowledge.deletion_coordinator import DocumentDeletionCoordinator
from kbase.services.knowledge.document_lister import PaginatedDocumentLister
from kbase.services.knowledge.document_writer import DocumentWriter
from kbase.services.knowledge.embedding_resolver import CollectionEmbeddingResolver
from kbase.services.knowledge.knowledge_service import KnowledgeService
from kbase.services.knowledge.upload_orchestrator import DocumentUploadOrchestrator
from kbase.services.knowledge.vector_upsert import VectorUpsertCoordinator
from kbase.utils.errors import ConfigurationError
from kbase.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_embedding_provider(app_settings: Settings, model: str | None = None) -> IEmbeddingProvider:
    """Build an embedding provider for *model* (or the configured default).

    Priority: OpenAI/OpenAI-compatible (if an API key is set) ->
              Nomic/Ollama.
    """
    if app_settings.openai_api_key:
        from kbase.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        return OpenAIEmbeddingProvider(settings=app_settings, model=model)

    from kbase.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

    return NomicEmbeddingProvider(settings=app_settings, model=model)


def build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    """Return the configured vector store.  Only ChromaDB is bundled."""
    provider = app_settings.vector_db_provider.strip().lower()
    if provider != "chromadb":
        raise ConfigurationError(
            message=f"Unsupported VECTOR_DB_PROVIDER '{app_settings.vector_db_provider}'",
        )

    from kbase.providers.vector_store.chromadb_provider import ChromaDBProvider

    return ChromaDBProvider(persist_directory=app_settings.chromadb_persist_dir)


def default_chunk_options(app_settings: Settings) -> ChunkOptions:
    try:
        split_by = SplitBy(app_settings.default_split_by)
    except ValueError as exc:
        raise ConfigurationError(
            message=f"Unknown DEFAULT_SPLIT_BY '{app_settings.default_split_by}'",
        ) from exc
    try:
        return ChunkOptions(
            max_chunk_size=app_settings.default_chunk_size,
            overlap=app_settings.default_chunk_overlap,
            split_by=split_by,
        )
    except ValueError as exc:
        raise ConfigurationError(message=f"Invalid default chunk options: {exc}") from exc


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_knowledge_service(
    app_settings: Settings,
    *,
    vector_store: IVectorStoreProvider | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
    blob_storage: IBlobStorageProvider | None = None,
    metadata_store: IDocumentMetadataStore | None = None,
    remote_fetcher: IRemoteFileProvider | None = None,
) -> dict[str, Any]:
    """Instantiate every collaborator and the KnowledgeService facade.

    Any provider passed in is used as-is; the rest are built from
    *app_settings*.  Returns a flat dict of named components to be stored
    on ``app.state``.
    """
    vector_store = vector_store or build_vector_store(app_settings)
    blob_storage = blob_storage or LocalFileStorageProvider(
        base_dir=app_settings.blob_storage_dir,
        public_base_url=app_settings.blob_public_base_url,
    )
    metadata_store = metadata_store or SQLiteDocumentMetadataStore(
        db_path=app_settings.metadata_db_path
    )
    remote_fetcher = remote_fetcher or HttpFileProvider(
        timeout=app_settings.remote_fetch_timeout,
        max_bytes=app_settings.remote_fetch_max_bytes,
    )

    if embedding_provider is not None:
        # An injected provider stands in for every model binding too.
        resolver = CollectionEmbeddingResolver(default_provider=embedding_provider)
    else:
        resolver = CollectionEmbeddingResolver(
            default_provider=build_embedding_provider(app_settings),
            bindings=app_settings.collection_embedding_models,
            factory=lambda model: build_embedding_provider(app_settings, model),
        )

    timeout = app_settings.external_call_timeout
    vector_upsert = VectorUpsertCoordinator(
        vector_store=vector_store,
        embedding_resolver=resolver,
        concurrency=app_settings.chunk_concurrency,
        timeout=timeout,
    )
    writer = DocumentWriter(
        blob_storage=blob_storage,
        vector_store=vector_store,
        vector_upsert=vector_upsert,
        metadata_store=metadata_store,
        timeout=timeout,
    )
    uploader = DocumentUploadOrchestrator(
        vector_store=vector_store,
        extractor=ContentExtractor(),
        writer=writer,
        remote_fetcher=remote_fetcher,
        concurrency=app_settings.upload_concurrency,
        timeout=timeout,
        default_options=default_chunk_options(app_settings),
        default_user_id=app_settings.default_user_id,
    )
    deleter = DocumentDeletionCoordinator(
        metadata_store=metadata_store,
        blob_storage=blob_storage,
        vector_store=vector_store,
        timeout=timeout,
    )
    lister = PaginatedDocumentLister(
        metadata_store=metadata_store,
        blob_storage=blob_storage,
        vector_store_provider=vector_store.get_provider_name(),
    )
    service = KnowledgeService(
        vector_store=vector_store,
        embedding_resolver=resolver,
        uploader=uploader,
        deleter=deleter,
        lister=lister,
    )

    return {
        "knowledge_service": service,
        "vector_store": vector_store,
        "blob_storage": blob_storage,
        "metadata_store": metadata_store,
        "remote_fetcher": remote_fetcher,
    }


async def initialize_components(components: dict[str, Any]) -> None:
    """Create the metadata tables (idempotent)."""
    await components["metadata_store"].initialize()


async def close_components(components: dict[str, Any]) -> None:
    remote_fetcher = components.get("remote_fetcher")
    if isinstance(remote_fetcher, HttpFileProvider):
        await remote_fetcher.aclose()


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    *components* (as returned by :func:`build_knowledge_service`) are
    built lazily at startup when not supplied.
    """
    app_settings = app_settings or settings
    config = load_config(settings=app_settings)

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        built = components or build_knowledge_service(app_settings)
        for key, value in built.items():
            setattr(application.state, key, value)

        await initialize_components(built)
        _logger.info(
            "app_startup",
            version=_VERSION,
            environment=app_settings.app_env,
            providers=built["knowledge_service"].provider_names(),
        )

        yield

        await close_components(built)
        _logger.info("app_shutdown")

    application = FastAPI(
        title="kbase API",
        version=_VERSION,
        description=(
            "Ingest documents into vector collections, list them, download "
            "the originals and delete them with their vector entries."
        ),
        lifespan=_lifespan,
    )

    # Last added = first executed.
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("api", {}).get("cors_origins"))

    application.include_router(knowledge_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "kbase.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
