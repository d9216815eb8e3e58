"""Unit tests for the knowledge-base Pydantic models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from kbase.models.knowledge import (
    ChunkOptions,
    DocumentMetadata,
    ExternalFile,
    FileBinaryData,
    ItemResult,
    ItemStatus,
    KnowledgeFileFilter,
    SplitBy,
    UploadKnowledgeResult,
)


# ======================================================================
# ChunkOptions
# ======================================================================


class TestChunkOptions:
    def test_defaults(self) -> None:
        opts = ChunkOptions()
        assert opts.max_chunk_size == 1024
        assert opts.overlap == 12
        assert opts.split_by is SplitBy.SENTENCE

    @pytest.mark.parametrize("size,overlap", [(10, 10), (10, 11), (1, 1)])
    def test_overlap_must_be_smaller_than_size(self, size: int, overlap: int) -> None:
        with pytest.raises(ValidationError, match="overlap"):
            ChunkOptions(max_chunk_size=size, overlap=overlap)

    def test_non_positive_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChunkOptions(max_chunk_size=0, overlap=0)

    def test_split_by_from_string(self) -> None:
        assert ChunkOptions(split_by="word").split_by is SplitBy.WORD

    def test_frozen(self) -> None:
        opts = ChunkOptions()
        with pytest.raises(ValidationError):
            opts.overlap = 3


# ======================================================================
# ExternalFile
# ======================================================================


class TestExternalFile:
    @pytest.mark.parametrize(
        "file_data,file_url,expected",
        [
            ("aGk=", None, True),
            (None, "https://x/a.txt", True),
            ("   ", "  ", False),
            (None, None, False),
        ],
    )
    def test_has_content(self, file_data: str | None, file_url: str | None, expected: bool) -> None:
        file = ExternalFile(file_name="a.txt", file_data=file_data, file_url=file_url)
        assert file.has_content() is expected

    def test_default_source(self) -> None:
        assert ExternalFile(file_name="a.txt").file_source == "api"


# ======================================================================
# DocumentMetadata / filters / binary data
# ======================================================================


class TestDocumentMetadata:
    def test_vector_ids_deduplicated_in_order(self) -> None:
        record = DocumentMetadata(
            collection="docs",
            file_id="f-1",
            file_name="a.txt",
            vector_store_provider="memory",
            vector_data_ids=["v2", "v1", "v2", "v3", "v1"],
        )
        assert record.vector_data_ids == ["v2", "v1", "v3"]

    def test_create_date_defaults_to_aware_now(self) -> None:
        before = datetime.now(timezone.utc)
        record = DocumentMetadata(
            collection="docs", file_id="f-1", file_name="a.txt", vector_store_provider="memory"
        )
        assert record.create_date.tzinfo is not None
        assert record.create_date >= before


class TestKnowledgeFileFilter:
    @pytest.mark.parametrize("page,size,offset", [(1, 10, 0), (2, 10, 10), (3, 7, 14)])
    def test_offset(self, page: int, size: int, offset: int) -> None:
        assert KnowledgeFileFilter(page=page, size=size).offset == offset

    def test_page_is_one_based(self) -> None:
        with pytest.raises(ValidationError):
            KnowledgeFileFilter(page=0)

    def test_filters_default_to_none(self) -> None:
        flt = KnowledgeFileFilter()
        assert flt.file_ids is None
        assert flt.file_names is None
        assert flt.file_sources is None
        assert flt.content_types is None


class TestFileBinaryData:
    def test_placeholder(self) -> None:
        placeholder = FileBinaryData.placeholder()
        assert placeholder.file_name == "error.txt"
        assert placeholder.content_type == "text/plain"
        assert placeholder.data == b""


# ======================================================================
# Upload results
# ======================================================================


class TestUploadKnowledgeResult:
    def test_from_items_keeps_order_and_dedupes(self) -> None:
        items = [
            ItemResult.succeeded("b.txt", "id-b"),
            ItemResult.failed("c.txt", "boom"),
            ItemResult.succeeded("a.txt", "id-a"),
            ItemResult.succeeded("b.txt", "id-b2"),
            ItemResult.skipped("d.txt", "empty"),
            ItemResult.failed("c.txt", "boom again"),
        ]
        result = UploadKnowledgeResult.from_items(items)

        assert result.success == ["b.txt", "a.txt"]
        assert result.failed == ["c.txt"]
        assert len(result.details) == 6

    def test_name_with_any_failure_listed_as_failed_only(self) -> None:
        items = [
            ItemResult.succeeded("dup.txt", "id-1"),
            ItemResult.failed("dup.txt", "boom"),
            ItemResult.succeeded("ok.txt", "id-2"),
        ]
        result = UploadKnowledgeResult.from_items(items)

        assert result.success == ["ok.txt"]
        assert result.failed == ["dup.txt"]
        assert [d.file_id for d in result.details if d.file_name == "dup.txt"] == ["id-1", None]

    def test_skipped_in_neither_list(self) -> None:
        result = UploadKnowledgeResult.from_items([ItemResult.skipped("d.txt", "empty")])
        assert result.success == []
        assert result.failed == []
        assert result.details[0].status is ItemStatus.SKIPPED

    def test_all_failed(self) -> None:
        result = UploadKnowledgeResult.all_failed(["a.txt", "b.txt"], "no collection")
        assert result.success == []
        assert result.failed == ["a.txt", "b.txt"]
        assert {d.reason for d in result.details} == {"no collection"}

    def test_serialises_status_values(self) -> None:
        dumped = UploadKnowledgeResult.from_items([ItemResult.succeeded("a.txt", "id")]).model_dump(
            mode="json"
        )
        assert dumped["details"][0]["status"] == "success"
