"""Knowledge-base data models.

Pydantic v2 models for everything that crosses a component boundary in the
ingestion pipeline: chunking options, uploaded files, the durable
:class:`DocumentMetadata` record, listing filters, paged results and the
per-file outcome of a batch upload.  Value objects are frozen.

How the pieces relate::

    ExternalFile --(extract + chop)--> chunks --(embed + upsert)--> vector ids
                                                                      |
    DocumentMetadata <------------------------------------------------+
        collection / file_id / vector_data_ids / ...

A document's ``vector_data_ids`` are the only link between the metadata
store and the vector store; deletion removes exactly those ids.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------
class SplitBy(str, Enum):
    """Preferred boundary for chunk cuts, from coarsest to finest."""

    PARAGRAPH = "paragraph"
    SENTENCE = "sentence"
    WORD = "word"
    CHARACTER = "character"


class ChunkOptions(BaseModel):
    """Policy for :class:`~kbase.services.knowledge.chunker.TextChunker`.

    ``max_chunk_size`` and ``overlap`` are measured in characters.  The
    overlap must be strictly smaller than the chunk size, otherwise the
    chunker could not make progress.
    """

    model_config = ConfigDict(frozen=True)

    max_chunk_size: int = Field(default=1024, ge=1, description="Maximum characters per chunk.")
    overlap: int = Field(default=12, ge=0, description="Characters shared by consecutive chunks.")
    split_by: SplitBy = Field(default=SplitBy.SENTENCE, description="Preferred cut boundary.")

    @model_validator(mode="after")
    def _check_overlap(self) -> ChunkOptions:
        if self.overlap >= self.max_chunk_size:
            raise ValueError(
                f"overlap ({self.overlap}) must be smaller than max_chunk_size ({self.max_chunk_size})"
            )
        return self


# ---------------------------------------------------------------------------
# Upload input
# ---------------------------------------------------------------------------
class ExternalFile(BaseModel):
    """One file submitted for ingestion, either inline or by URL.

    ``file_data`` is a ``data:<mime>;base64,...`` URL or bare base64.  When
    both are present the URL wins.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(description="Display name, also used to guess the content type.")
    file_data: str | None = Field(default=None, description="Inline base64 / data-URL content.")
    file_url: str | None = Field(default=None, description="Remote location to download from.")
    file_source: str = Field(default="api", description="Origin tag, e.g. 'api', 'upload', 'crawler'.")

    def has_content(self) -> bool:
        """Return ``True`` if the file carries inline data or a URL."""
        return bool((self.file_data or "").strip() or (self.file_url or "").strip())


class DocMetaRefData(BaseModel):
    """External reference attached to an imported document (e.g. its source page)."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    type: str | None = None
    url: str | None = None


# ---------------------------------------------------------------------------
# DocumentMetadata: the durable record per ingested document.
# ---------------------------------------------------------------------------
class DocumentMetadata(BaseModel):
    """Durable record linking one ingested document to its vector entries.

    Created once, after at least one chunk was stored, and only ever
    removed as a whole by document deletion.
    """

    model_config = ConfigDict(frozen=True)

    collection: str
    file_id: str
    file_name: str
    file_source: str = ""
    content_type: str = ""
    vector_store_provider: str
    vector_data_ids: list[str] = Field(default_factory=list)
    ref_data: DocMetaRefData | None = None
    create_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    create_user_id: str = ""

    @field_validator("vector_data_ids")
    @classmethod
    def _dedupe_ids(cls, value: list[str]) -> list[str]:
        # Ordered set semantics.
        return list(dict.fromkeys(value))


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
class KnowledgeFileFilter(BaseModel):
    """Page selector and optional equality filters over document metadata.

    Each list filter matches any of its values; filters combine with AND.
    ``None`` means "do not filter on this field".
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    size: int = Field(default=10, ge=1)
    file_ids: list[str] | None = None
    file_names: list[str] | None = None
    file_sources: list[str] | None = None
    content_types: list[str] | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class KnowledgeFile(BaseModel):
    """Display view of an ingested document, with a hydrated download URL."""

    model_config = ConfigDict(frozen=True)

    file_id: str
    file_name: str
    file_source: str = ""
    file_extension: str = ""
    content_type: str = ""
    file_url: str = ""
    ref_data: DocMetaRefData | None = None


class FileBinaryData(BaseModel):
    """Raw bytes of a stored document, ready to stream back to a caller."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    content_type: str
    data: bytes = b""

    @classmethod
    def placeholder(cls) -> FileBinaryData:
        """The fixed result returned when a document id is unknown."""
        return cls(file_name="error.txt", content_type="text/plain", data=b"")


class PagedItems(BaseModel, Generic[T]):
    """One page of results plus the total number of matches."""

    items: list[T] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Upload outcome
# ---------------------------------------------------------------------------
class ItemStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class ItemResult(BaseModel):
    """Outcome of ingesting a single file: a status tag plus a reason."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    status: ItemStatus
    reason: str | None = None
    file_id: str | None = None

    @classmethod
    def succeeded(cls, file_name: str, file_id: str) -> ItemResult:
        return cls(file_name=file_name, status=ItemStatus.SUCCESS, file_id=file_id)

    @classmethod
    def failed(cls, file_name: str, reason: str, file_id: str | None = None) -> ItemResult:
        return cls(file_name=file_name, status=ItemStatus.FAILED, reason=reason, file_id=file_id)

    @classmethod
    def skipped(cls, file_name: str, reason: str) -> ItemResult:
        return cls(file_name=file_name, status=ItemStatus.SKIPPED, reason=reason)


class UploadKnowledgeResult(BaseModel):
    """Externally visible outcome of a batch upload.

    ``success`` and ``failed`` are ordered per-name summaries, free of
    duplicates, and never share a name: if any file with a given name
    failed, that name is listed in ``failed`` only.  Skipped files (no data
    and no URL) appear in neither.  ``details`` keeps one entry per file.
    """

    model_config = ConfigDict(frozen=True)

    success: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    details: list[ItemResult] = Field(default_factory=list)

    @classmethod
    def from_items(cls, items: list[ItemResult]) -> UploadKnowledgeResult:
        success = [i.file_name for i in items if i.status is ItemStatus.SUCCESS]
        failed = [i.file_name for i in items if i.status is ItemStatus.FAILED]
        failed_names = set(failed)
        return cls(
            success=[name for name in dict.fromkeys(success) if name not in failed_names],
            failed=list(dict.fromkeys(failed)),
            details=list(items),
        )

    @classmethod
    def all_failed(cls, file_names: list[str], reason: str) -> UploadKnowledgeResult:
        return cls.from_items([ItemResult.failed(name, reason) for name in file_names])
