"""Unit tests for upload decoding and content-type helpers."""

from __future__ import annotations

import base64

import pytest

from kbase.utils.errors import ValidationError
from kbase.utils.file_utils import (
    DEFAULT_CONTENT_TYPE,
    decode_file_data,
    get_file_extension,
    guess_content_type,
)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class TestGuessContentType:
    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("notes.txt", "text/plain"),
            ("README.md", "text/markdown"),
            ("REPORT.MD", "text/markdown"),
            ("table.csv", "text/csv"),
            ("paper.pdf", "application/pdf"),
            ("blob.zzunknown", DEFAULT_CONTENT_TYPE),
            ("no_extension", DEFAULT_CONTENT_TYPE),
        ],
    )
    def test_guess(self, file_name: str, expected: str) -> None:
        assert guess_content_type(file_name) == expected


class TestGetFileExtension:
    @pytest.mark.parametrize(
        "file_name,expected",
        [("a.txt", ".txt"), ("archive.tar.gz", ".gz"), ("README", ""), ("", "")],
    )
    def test_extension(self, file_name: str, expected: str) -> None:
        assert get_file_extension(file_name) == expected


class TestDecodeFileData:
    def test_data_url(self) -> None:
        content_type, data = decode_file_data(f"data:text/plain;base64,{_b64(b'hello')}", "a.bin")
        assert content_type == "text/plain"
        assert data == b"hello"

    def test_data_url_mime_is_lower_cased(self) -> None:
        content_type, _ = decode_file_data(f"data:Text/Markdown;base64,{_b64(b'# hi')}", "a.txt")
        assert content_type == "text/markdown"

    def test_data_url_without_mime_guesses_from_name(self) -> None:
        content_type, data = decode_file_data(f"data:;base64,{_b64(b'x')}", "notes.md")
        assert content_type == "text/markdown"
        assert data == b"x"

    def test_bare_base64(self) -> None:
        content_type, data = decode_file_data(_b64(b"plain bytes"), "notes.txt")
        assert content_type == "text/plain"
        assert data == b"plain bytes"

    def test_whitespace_in_base64_is_ignored(self) -> None:
        encoded = _b64(b"wrapped across lines")
        wrapped = "\n".join(encoded[i : i + 8] for i in range(0, len(encoded), 8))
        _, data = decode_file_data(wrapped, "notes.txt")
        assert data == b"wrapped across lines"

    def test_percent_encoded_data_url(self) -> None:
        content_type, data = decode_file_data("data:text/plain,hello%20world", "a.txt")
        assert content_type == "text/plain"
        assert data == b"hello world"

    @pytest.mark.parametrize("payload", ["not base64!!", "data:text/plain;base64,@@@@"])
    def test_invalid_base64_raises(self, payload: str) -> None:
        with pytest.raises(ValidationError, match="not valid base64"):
            decode_file_data(payload, "bad.txt")
