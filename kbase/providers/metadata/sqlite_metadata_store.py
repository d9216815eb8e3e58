"""SQLite-backed document metadata store.

Persists one row per ingested document to a local SQLite database at
``data/knowledge_meta.db``.  Uses ``aiosqlite`` for async I/O.  List-valued
fields (``vector_data_ids``, ``ref_data``) are stored as JSON text.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from kbase.interfaces.metadata_store_provider import IDocumentMetadataStore
from kbase.models.knowledge import (
    DocMetaRefData,
    DocumentMetadata,
    KnowledgeFileFilter,
    PagedItems,
)
from kbase.utils.errors import MetadataStoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowledge_meta.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS knowledge_documents (
    collection             TEXT NOT NULL,
    vector_store_provider  TEXT NOT NULL,
    file_id                TEXT NOT NULL,
    file_name              TEXT NOT NULL,
    file_source            TEXT NOT NULL DEFAULT '',
    content_type           TEXT NOT NULL DEFAULT '',
    vector_data_ids        TEXT NOT NULL DEFAULT '[]',
    ref_data               TEXT,
    create_date            TEXT NOT NULL,
    create_user_id         TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (collection, vector_store_provider, file_id)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_kdocs_partition_date "
    "ON knowledge_documents(collection, vector_store_provider, create_date, file_id);",
    "CREATE INDEX IF NOT EXISTS idx_kdocs_file_name ON knowledge_documents(file_name);",
]

_INSERT_SQL = """\
INSERT INTO knowledge_documents (
    collection, vector_store_provider, file_id, file_name, file_source,
    content_type, vector_data_ids, ref_data, create_date, create_user_id
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_DELETE_SQL = """\
DELETE FROM knowledge_documents
WHERE collection = ? AND vector_store_provider = ? AND file_id = ?;
"""

# Filter name on KnowledgeFileFilter -> column.
_FILTER_COLUMNS: dict[str, str] = {
    "file_ids": "file_id",
    "file_names": "file_name",
    "file_sources": "file_source",
    "content_types": "content_type",
}


class SQLiteDocumentMetadataStore(IDocumentMetadataStore):
    """SQLite-backed document metadata persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents table and indices if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise MetadataStoreError(
                message=f"Failed to initialise metadata database: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("metadata_db_initialized", path=str(self._db_path))

    async def save(self, record: DocumentMetadata) -> None:
        ref_data = record.ref_data.model_dump_json() if record.ref_data else None
        params = (
            record.collection,
            record.vector_store_provider,
            record.file_id,
            record.file_name,
            record.file_source,
            record.content_type,
            json.dumps(record.vector_data_ids),
            ref_data,
            record.create_date.isoformat(),
            record.create_user_id,
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_SQL, params)
                await db.commit()
        except aiosqlite.Error as exc:
            raise MetadataStoreError(
                message=f"Failed to save metadata for file {record.file_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug(
            "metadata_saved",
            collection=record.collection,
            file_id=record.file_id,
            vector_count=len(record.vector_data_ids),
        )

    async def get_paged(
        self,
        collection: str,
        vector_store_provider: str,
        filter: KnowledgeFileFilter,
    ) -> PagedItems[DocumentMetadata]:
        where, params = self._build_where(collection, vector_store_provider, filter)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    f"SELECT COUNT(*) AS total FROM knowledge_documents WHERE {where}",
                    params,
                )
                count_row = await cursor.fetchone()
                cursor = await db.execute(
                    "SELECT * FROM knowledge_documents "
                    f"WHERE {where} ORDER BY create_date ASC, file_id ASC LIMIT ? OFFSET ?",
                    [*params, filter.size, filter.offset],
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise MetadataStoreError(
                message=f"Failed to query metadata for collection '{collection}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return PagedItems[DocumentMetadata](
            items=[self._row_to_record(dict(r)) for r in rows],
            count=count_row["total"] if count_row else 0,
        )

    async def delete_one(self, collection: str, vector_store_provider: str, file_id: str) -> bool:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_DELETE_SQL, (collection, vector_store_provider, file_id))
                await db.commit()
                deleted = cursor.rowcount
        except aiosqlite.Error as exc:
            raise MetadataStoreError(
                message=f"Failed to delete metadata for file {file_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return deleted > 0

    def get_provider_name(self) -> str:
        return "sqlite_metadata"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_where(
        collection: str,
        vector_store_provider: str,
        filter: KnowledgeFileFilter,
    ) -> tuple[str, list[Any]]:
        clauses = ["collection = ?", "vector_store_provider = ?"]
        params: list[Any] = [collection, vector_store_provider]
        for field_name, column in _FILTER_COLUMNS.items():
            values = getattr(filter, field_name)
            if values is None:
                continue
            if not values:
                # An empty list matches nothing.
                clauses.append("0")
                continue
            placeholders = ", ".join("?" for _ in values)
            clauses.append(f"{column} IN ({placeholders})")
            params.extend(values)
        return " AND ".join(clauses), params

    @staticmethod
    def _row_to_record(row: dict[str, Any]) -> DocumentMetadata:
        ref_data = row.get("ref_data")
        return DocumentMetadata(
            collection=row["collection"],
            vector_store_provider=row["vector_store_provider"],
            file_id=row["file_id"],
            file_name=row["file_name"],
            file_source=row["file_source"],
            content_type=row["content_type"],
            vector_data_ids=json.loads(row["vector_data_ids"] or "[]"),
            ref_data=DocMetaRefData.model_validate_json(ref_data) if ref_data else None,
            create_date=row["create_date"],
            create_user_id=row["create_user_id"],
        )
