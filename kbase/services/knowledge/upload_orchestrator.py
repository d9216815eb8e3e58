"""Batch document ingestion into an existing vector collection.

:class:`DocumentUploadOrchestrator` drives every file of a batch through::

    resolve content --> extract chunks --> DocumentWriter (blob, vectors, metadata)

Each file runs inside its own failure boundary and yields an
:class:`ItemResult`; nothing a single file does can abort the batch or
raise out of :meth:`upload_batch`.  Files without inline data or a URL are
skipped and appear in neither the ``success`` nor the ``failed`` list.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from kbase.interfaces.remote_file_provider import IRemoteFileProvider
from kbase.interfaces.vector_store_provider import IVectorStoreProvider
from kbase.models.knowledge import (
    ChunkOptions,
    DocMetaRefData,
    ExternalFile,
    ItemResult,
    ItemStatus,
    UploadKnowledgeResult,
)
from kbase.services.knowledge.content_extractor import ContentExtractor
from kbase.services.knowledge.document_writer import DocumentWriter, describe_error
from kbase.utils.concurrency import throttled_gather, with_timeout
from kbase.utils.errors import RemoteFetchError
from kbase.utils.file_utils import decode_file_data, guess_content_type

logger = structlog.get_logger(logger_name=__name__)


class DocumentUploadOrchestrator:
    """Ingests batches of files and single pre-chunked documents.

    Parameters
    ----------
    vector_store:
        Used once per call to check that the collection exists.
    extractor:
        Turns document bytes into chunks.
    writer:
        Persists a chunked document to the blob, vector and metadata stores.
    remote_fetcher:
        Downloads files given by URL.  Optional; URL files fail without it.
    concurrency:
        Maximum files processed at once (1 = sequential).
    timeout:
        Seconds allowed for the collection check and each remote fetch.
    default_options:
        Chunking policy used when a batch does not supply one.
    default_user_id:
        Recorded as ``create_user_id`` when the caller supplies none.
    """

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        extractor: ContentExtractor,
        writer: DocumentWriter,
        remote_fetcher: IRemoteFileProvider | None = None,
        concurrency: int = 1,
        timeout: float | None = None,
        default_options: ChunkOptions | None = None,
        default_user_id: str = "",
    ) -> None:
        self._vector_store = vector_store
        self._extractor = extractor
        self._writer = writer
        self._remote_fetcher = remote_fetcher
        self._concurrency = concurrency
        self._timeout = timeout
        self._default_options = default_options or ChunkOptions()
        self._default_user_id = default_user_id

    # ------------------------------------------------------------------
    # Batch upload
    # ------------------------------------------------------------------

    async def upload_batch(
        self,
        collection: str,
        files: Sequence[ExternalFile] | None,
        options: ChunkOptions | None = None,
        user_id: str | None = None,
    ) -> UploadKnowledgeResult:
        """Ingest *files* into *collection* and report per-file outcomes."""
        files = list(files or [])
        file_names = [f.file_name for f in files]

        if not collection or not collection.strip() or not files:
            logger.warning(
                "knowledge_upload_rejected",
                collection=collection,
                file_count=len(files),
            )
            return UploadKnowledgeResult.all_failed(
                file_names, "collection name and at least one file are required"
            )

        exists, reason = await self._check_collection(collection)
        if not exists:
            logger.warning("knowledge_upload_collection_missing", collection=collection, reason=reason)
            return UploadKnowledgeResult.all_failed(file_names, reason)

        opts = options or self._default_options
        uid = user_id or self._default_user_id
        results = await throttled_gather(
            [self._process_file(collection, f, opts, uid) for f in files],
            limit=self._concurrency,
        )

        items: list[ItemResult] = []
        for file, result in zip(files, results):
            if isinstance(result, ItemResult):
                items.append(result)
            else:
                items.append(ItemResult.failed(file.file_name, describe_error(result)))

        outcome = UploadKnowledgeResult.from_items(items)
        logger.info(
            "knowledge_upload_complete",
            collection=collection,
            total=len(files),
            succeeded=len(outcome.success),
            failed=len(outcome.failed),
            skipped=sum(1 for i in items if i.status is ItemStatus.SKIPPED),
        )
        return outcome

    async def _process_file(
        self,
        collection: str,
        file: ExternalFile,
        options: ChunkOptions,
        user_id: str,
    ) -> ItemResult:
        if not file.has_content():
            logger.info("knowledge_file_skipped", collection=collection, file_name=file.file_name)
            return ItemResult.skipped(file.file_name, "file has neither data nor url")

        try:
            content_type, data = await self._resolve_content(file)
            chunks = self._extractor.extract(content_type, data, options)
            result = await self._writer.write(
                collection=collection,
                file_name=file.file_name,
                file_source=file.file_source,
                content_type=content_type,
                data=data,
                chunks=chunks,
                user_id=user_id,
                file_url=file.file_url,
            )
        except Exception as exc:
            result = ItemResult.failed(file.file_name, describe_error(exc))

        if result.status is ItemStatus.FAILED:
            logger.error(
                "knowledge_file_failed",
                collection=collection,
                file_name=file.file_name,
                reason=result.reason,
            )
        return result

    async def _resolve_content(self, file: ExternalFile) -> tuple[str, bytes]:
        """Return ``(content_type, bytes)``; a URL takes precedence over inline data."""
        url = (file.file_url or "").strip()
        if url:
            if self._remote_fetcher is None:
                raise RemoteFetchError(message=f"No remote fetcher configured for {url}")
            data = await with_timeout(self._remote_fetcher.fetch(url), self._timeout)
            return guess_content_type(file.file_name), data
        return decode_file_data(file.file_data or "", file.file_name)

    # ------------------------------------------------------------------
    # Direct content import
    # ------------------------------------------------------------------

    async def import_content(
        self,
        collection: str,
        file_name: str,
        file_source: str,
        contents: Sequence[str] | None,
        ref_data: DocMetaRefData | None = None,
        payload: Mapping[str, Any] | None = None,
        user_id: str | None = None,
    ) -> bool:
        """Store already-chunked text as one document.

        The text is not re-chunked.  The joined chunks are kept as the
        document's blob so it can be downloaded like an uploaded file.
        Returns ``True`` only if the metadata record was written.
        """
        chunks = [c for c in (contents or []) if c and c.strip()]
        if not collection or not collection.strip() or not file_name or not file_name.strip() or not chunks:
            logger.warning(
                "knowledge_import_rejected",
                collection=collection,
                file_name=file_name,
                chunk_count=len(chunks),
            )
            return False

        exists, reason = await self._check_collection(collection)
        if not exists:
            logger.warning("knowledge_import_collection_missing", collection=collection, reason=reason)
            return False

        try:
            result = await self._writer.write(
                collection=collection,
                file_name=file_name,
                file_source=file_source,
                content_type=guess_content_type(file_name),
                data="\n\n".join(chunks).encode("utf-8"),
                chunks=chunks,
                user_id=user_id or self._default_user_id,
                file_url=ref_data.url if ref_data else None,
                ref_data=ref_data,
                extra_payload=payload,
            )
        except Exception as exc:
            logger.error(
                "knowledge_import_failed",
                collection=collection,
                file_name=file_name,
                reason=describe_error(exc),
            )
            return False

        if result.status is not ItemStatus.SUCCESS:
            logger.error(
                "knowledge_import_failed",
                collection=collection,
                file_name=file_name,
                reason=result.reason,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _check_collection(self, collection: str) -> tuple[bool, str]:
        try:
            exists = await with_timeout(
                self._vector_store.collection_exists(collection), self._timeout
            )
        except Exception as exc:
            return False, f"collection check failed: {describe_error(exc)}"
        if not exists:
            return False, f"collection '{collection}' does not exist"
        return True, ""
