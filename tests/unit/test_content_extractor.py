"""Unit tests for ContentExtractor content-type dispatch."""

from __future__ import annotations

import pytest

from kbase.models.knowledge import ChunkOptions, SplitBy
from kbase.services.knowledge.content_extractor import ContentExtractor, normalise_content_type

_OPTS = ChunkOptions(max_chunk_size=15, overlap=0, split_by=SplitBy.SENTENCE)
_TEXT = b"Hello world! How are you? Fine."


class TestNormaliseContentType:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("text/plain", "text/plain"),
            ("Text/Plain; charset=utf-8", "text/plain"),
            ("  TEXT/MARKDOWN ", "text/markdown"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalise(self, raw: str | None, expected: str) -> None:
        assert normalise_content_type(raw) == expected


class TestTextReaders:
    @pytest.mark.parametrize("content_type", ["text/plain", "text/markdown", "text/csv"])
    def test_text_types_are_chunked(self, content_type: str) -> None:
        chunks = ContentExtractor().extract(content_type, _TEXT, _OPTS)
        assert chunks == ["Hello world! ", "How are you? ", "Fine."]

    def test_parameters_and_case_ignored(self) -> None:
        extractor = ContentExtractor()
        assert extractor.supports("Text/Plain; charset=utf-8")
        assert extractor.extract("Text/Plain; charset=utf-8", b"hi there", _OPTS) == ["hi there"]

    def test_bom_is_dropped(self) -> None:
        assert ContentExtractor().extract("text/plain", b"\xef\xbb\xbfHello", _OPTS) == ["Hello"]

    def test_invalid_utf8_yields_no_chunks(self) -> None:
        assert ContentExtractor().extract("text/plain", b"\xff\xfe\xfa\x00bad", _OPTS) == []

    def test_blank_text_yields_no_chunks(self) -> None:
        assert ContentExtractor().extract("text/plain", b"   \n  ", _OPTS) == []

    def test_default_options(self) -> None:
        assert ContentExtractor().extract("text/plain", b"Short.") == ["Short."]


class TestOtherTypes:
    @pytest.mark.parametrize("content_type", ["image/png", "application/octet-stream", "", None])
    def test_unsupported_type_yields_no_chunks(self, content_type: str | None) -> None:
        extractor = ContentExtractor()
        assert not extractor.supports(content_type)
        assert extractor.extract(content_type, b"\x89PNG....", _OPTS) == []

    def test_pdf_yields_no_chunks(self) -> None:
        extractor = ContentExtractor()
        assert extractor.supports("application/pdf")
        assert extractor.extract("application/pdf", b"%PDF-1.7 ...", _OPTS) == []

    def test_register_custom_reader(self) -> None:
        extractor = ContentExtractor()
        extractor.register("Application/JSON", lambda data, opts: [data.decode("utf-8").upper()])

        assert extractor.supports("application/json; charset=utf-8")
        assert extractor.extract("application/json", b'{"a": 1}', _OPTS) == ['{"A": 1}']

    def test_register_replaces_builtin(self) -> None:
        extractor = ContentExtractor()
        extractor.register("text/plain", lambda data, opts: ["replaced"])
        assert extractor.extract("text/plain", _TEXT, _OPTS) == ["replaced"]
