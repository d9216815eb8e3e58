"""Integration tests for the kbase command-line client.

Each test drives ``kbase.cli.knowledge.run`` with an argv list against the
shared test components and checks the exit code and printed output.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from kbase.cli.knowledge import run
from tests.fakes import FakeVectorStore


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def _file_ids(components: dict[str, Any], collection: str = "docs") -> dict[str, str]:
    page = asyncio.run(components["knowledge_service"].get_paged_documents(collection))
    return {f.file_name: f.file_id for f in page.items}


# ======================================================================
# Argument handling
# ======================================================================


class TestArguments:
    def test_no_command_prints_help(self, components: dict[str, Any], capsys) -> None:
        assert run([], components=components) == 1
        assert "usage:" in capsys.readouterr().out

    def test_unknown_split_by_rejected(self, components: dict[str, Any]) -> None:
        with pytest.raises(SystemExit):
            run(["upload", "docs", "a.txt", "--split-by", "chapter"], components=components)

    def test_missing_local_file(self, components: dict[str, Any], tmp_path: Path, capsys) -> None:
        code = run(["upload", "docs", str(tmp_path / "ghost.txt")], components=components)

        assert code == 1
        assert "not a file" in capsys.readouterr().err

    def test_invalid_chunk_options(self, components: dict[str, Any], tmp_path: Path, capsys) -> None:
        path = _write(tmp_path, "a.txt", "Alpha.")
        code = run(
            ["upload", "docs", str(path), "--chunk-size", "10", "--overlap", "10"],
            components=components,
        )

        assert code == 1
        assert "overlap" in capsys.readouterr().err


# ======================================================================
# Commands
# ======================================================================


class TestCreateCollection:
    def test_create_and_exists(
        self, components: dict[str, Any], vector_store: FakeVectorStore, capsys
    ) -> None:
        assert run(["create-collection", "notes", "--dimension", "16"], components=components) == 0
        assert run(["create-collection", "notes"], components=components) == 0

        out = capsys.readouterr().out
        assert "Created collection 'notes'" in out
        assert "Collection 'notes' already exists" in out
        assert vector_store.dimensions["notes"] == 16

    def test_blank_name(self, components: dict[str, Any], capsys) -> None:
        assert run(["create-collection", "  "], components=components) == 1
        assert "Collection name must not be empty" in capsys.readouterr().err


class TestUploadListGet:
    def test_upload_then_list_and_get(
        self, components: dict[str, Any], tmp_path: Path, capsys
    ) -> None:
        first = _write(tmp_path, "intro.txt", "Welcome to the handbook.")
        second = _write(tmp_path, "faq.md", "# FAQ\n\nAsk away.")

        code = run(["upload", "docs", str(first), str(second), "--source", "cli"], components=components)

        out = capsys.readouterr().out
        assert code == 0
        assert "Upload complete:" in out
        assert "  Succeeded: 2" in out

        assert run(["list", "docs"], components=components) == 0
        out = capsys.readouterr().out
        assert "Documents in 'docs': 2 total" in out
        assert "intro.txt" in out

        file_id = _file_ids(components)["intro.txt"]
        output = tmp_path / "downloaded.txt"
        assert run(["get", "docs", file_id, "-o", str(output)], components=components) == 0
        assert output.read_bytes() == b"Welcome to the handbook."
        assert f"Wrote 24 bytes (text/plain) to {output}" in capsys.readouterr().out

    def test_upload_failure_exit_code(self, components: dict[str, Any], tmp_path: Path, capsys) -> None:
        path = _write(tmp_path, "a.txt", "Alpha.")

        assert run(["upload", "nope", str(path)], components=components) == 2
        assert "collection 'nope' does not exist" in capsys.readouterr().out


class TestImport:
    def test_import_text_file(
        self, components: dict[str, Any], vector_store: FakeVectorStore, tmp_path: Path, capsys
    ) -> None:
        path = _write(tmp_path, "notes.txt", "A short note.")

        code = run(
            ["import", "docs", str(path), "--ref-url", "https://wiki/notes", "--source", "wiki"],
            components=components,
        )

        assert code == 0
        assert "Imported 'notes.txt' (1 chunks)" in capsys.readouterr().out
        assert len(vector_store.entries("docs")) == 1

    def test_import_into_missing_collection(
        self, components: dict[str, Any], tmp_path: Path, capsys
    ) -> None:
        path = _write(tmp_path, "notes.txt", "A short note.")

        assert run(["import", "nope", str(path)], components=components) == 2
        assert "Import of 'notes.txt' failed" in capsys.readouterr().err


class TestDelete:
    def test_delete_by_file_id(self, components: dict[str, Any], tmp_path: Path, capsys) -> None:
        run(["upload", "docs", str(_write(tmp_path, "a.txt", "Alpha."))], components=components)
        file_id = _file_ids(components)["a.txt"]

        assert run(["delete", "docs", "--file-id", file_id], components=components) == 0
        assert f"Deleted {file_id}" in capsys.readouterr().out
        assert _file_ids(components) == {}

    def test_delete_failure_exit_code(
        self, components: dict[str, Any], vector_store: FakeVectorStore, tmp_path: Path
    ) -> None:
        run(["upload", "docs", str(_write(tmp_path, "a.txt", "Alpha."))], components=components)
        file_id = _file_ids(components)["a.txt"]
        vector_store.fail_delete = True

        assert run(["delete", "docs", "--file-id", file_id], components=components) == 2

    def test_filters_require_all_matching(self, components: dict[str, Any], capsys) -> None:
        assert run(["delete", "docs", "--source", "cli"], components=components) == 1
        assert "--all-matching" in capsys.readouterr().err

    def test_delete_all_matching(self, components: dict[str, Any], tmp_path: Path, capsys) -> None:
        run(
            [
                "upload",
                "docs",
                str(_write(tmp_path, "a.txt", "Alpha.")),
                str(_write(tmp_path, "b.txt", "Beta.")),
                "--source",
                "crawler",
            ],
            components=components,
        )
        run(["upload", "docs", str(_write(tmp_path, "c.txt", "Gamma."))], components=components)
        capsys.readouterr()

        code = run(["delete", "docs", "--source", "crawler", "--all-matching"], components=components)

        assert code == 0
        assert "Deleted matching documents" in capsys.readouterr().out
        assert set(_file_ids(components)) == {"c.txt"}
