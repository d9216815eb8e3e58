"""Local filesystem blob storage.

Keeps each document's original bytes under::

    <base_dir>/<vector_store_provider>/<collection>/<file_id>/<file_name>

One directory per document means deleting a document only needs its id.
Blocking filesystem calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import structlog

from kbase.interfaces.blob_storage_provider import IBlobStorageProvider
from kbase.utils.errors import BlobStorageError

logger = structlog.get_logger(logger_name=__name__)

_FALLBACK_FILE_NAME = "file"


class LocalFileStorageProvider(IBlobStorageProvider):
    """Blob storage on the local disk.

    Parameters
    ----------
    base_dir:
        Root directory for stored documents.
    public_base_url:
        Prefix for the URLs returned by :meth:`get_url`.  The API serves
        stored bytes at ``<prefix>/<collection>/documents/<file_id>/file``.
    """

    def __init__(self, base_dir: str | Path, public_base_url: str = "/api/v1/knowledge") -> None:
        self._base_dir = Path(base_dir)
        self._public_base_url = public_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # IBlobStorageProvider implementation
    # ------------------------------------------------------------------

    async def save(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
        data: bytes,
    ) -> bool:
        try:
            path = self._file_path(collection, vector_store_provider, file_id, file_name)
            await asyncio.to_thread(self._write, path, data)
        except (OSError, BlobStorageError) as exc:
            logger.warning(
                "blob_save_failed",
                collection=collection,
                file_id=file_id,
                error=str(exc),
            )
            return False
        logger.debug("blob_saved", collection=collection, file_id=file_id, size=len(data))
        return True

    async def delete(self, collection: str, vector_store_provider: str, file_id: str) -> None:
        directory = self._document_dir(collection, vector_store_provider, file_id)
        try:
            await asyncio.to_thread(self._remove_dir, directory)
        except OSError as exc:
            raise BlobStorageError(
                message=f"Failed to delete blob for file {file_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_url(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
    ) -> str:
        return (
            f"{self._public_base_url}/{quote(collection, safe='')}"
            f"/documents/{quote(file_id, safe='')}/file"
        )

    async def get_binary(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
    ) -> bytes:
        path = self._file_path(collection, vector_store_provider, file_id, file_name)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as exc:
            raise BlobStorageError(
                message=f"Failed to read blob for file {file_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "local_file_storage"

    # ------------------------------------------------------------------
    # Path helpers
    # ------------------------------------------------------------------

    def _document_dir(self, collection: str, vector_store_provider: str, file_id: str) -> Path:
        return (
            self._base_dir
            / self._segment(vector_store_provider)
            / self._segment(collection)
            / self._segment(file_id)
        )

    def _file_path(
        self,
        collection: str,
        vector_store_provider: str,
        file_id: str,
        file_name: str,
    ) -> Path:
        # Only the final component of the caller's file name is used.
        name = PurePosixPath(file_name.replace("\\", "/")).name or _FALLBACK_FILE_NAME
        return self._document_dir(collection, vector_store_provider, file_id) / self._segment(name)

    def _segment(self, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise BlobStorageError(
                message=f"Invalid path segment: {value!r}",
                provider_name=self.get_provider_name(),
            )
        return value

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    @staticmethod
    def _read(path: Path) -> bytes:
        if not path.is_file():
            return b""
        return path.read_bytes()

    @staticmethod
    def _remove_dir(directory: Path) -> None:
        if directory.exists():
            shutil.rmtree(directory)
