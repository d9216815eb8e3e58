"""Data models for the kbase ingestion pipeline."""

from kbase.models.knowledge import (
    ChunkOptions,
    DocMetaRefData,
    DocumentMetadata,
    ExternalFile,
    FileBinaryData,
    ItemResult,
    ItemStatus,
    KnowledgeFile,
    KnowledgeFileFilter,
    PagedItems,
    SplitBy,
    UploadKnowledgeResult,
)
from kbase.models.payload import KnowledgePayloadName, PayloadBuilder, VectorDataSource

__all__ = [
    "ChunkOptions",
    "DocMetaRefData",
    "DocumentMetadata",
    "ExternalFile",
    "FileBinaryData",
    "ItemResult",
    "ItemStatus",
    "KnowledgeFile",
    "KnowledgeFileFilter",
    "KnowledgePayloadName",
    "PagedItems",
    "PayloadBuilder",
    "SplitBy",
    "UploadKnowledgeResult",
    "VectorDataSource",
]
