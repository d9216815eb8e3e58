"""Pydantic request/response schemas for the knowledge-base API.

Domain models from :mod:`kbase.models.knowledge` (``ExternalFile``,
``KnowledgeFileFilter``, ``UploadKnowledgeResult`` ...) are used directly
where their shape is already the public contract; the models below only
wrap request bodies and simple acknowledgements.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from kbase.models.knowledge import ChunkOptions, DocMetaRefData, ExternalFile


class UploadDocumentsRequest(BaseModel):
    """Files to ingest into a collection, inline or by URL."""

    files: list[ExternalFile] = Field(default_factory=list)
    chunk_options: ChunkOptions | None = None
    user_id: str | None = None


class ImportContentRequest(BaseModel):
    """Pre-chunked text to store as a single document."""

    file_name: str = Field(..., min_length=1)
    file_source: str = "api"
    contents: list[str] = Field(default_factory=list)
    ref_data: DocMetaRefData | None = None
    payload: dict[str, Any] | None = None
    user_id: str | None = None


class ImportContentResponse(BaseModel):
    success: bool
    file_name: str


class CreateCollectionRequest(BaseModel):
    collection: str = Field(..., min_length=1)
    dimension: int | None = Field(default=None, ge=1)


class CollectionResponse(BaseModel):
    collection: str
    exists: bool
    created: bool = False


class DeleteResponse(BaseModel):
    success: bool


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
