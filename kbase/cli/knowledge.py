"""Command-line client for the kbase document pipeline.

Runs the same KnowledgeService as the API, in-process, against the stores
configured in ``.env``.

Usage::

    python -m kbase.cli create-collection handbook
    python -m kbase.cli upload handbook docs/intro.txt docs/faq.md --chunk-size 800
    python -m kbase.cli import handbook notes.txt --ref-url https://wiki/notes
    python -m kbase.cli list handbook --size 20
    python -m kbase.cli get handbook <file-id> --output intro.txt
    python -m kbase.cli delete handbook --file-id <file-id>
    python -m kbase.cli delete handbook --source crawler --all-matching
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from kbase.config.settings import Settings
from kbase.models.knowledge import (
    ChunkOptions,
    DocMetaRefData,
    ExternalFile,
    KnowledgeFileFilter,
    SplitBy,
)
from kbase.services.knowledge.chunker import TextChunker
from kbase.services.knowledge.knowledge_service import KnowledgeService
from kbase.utils.errors import KnowledgeBaseError
from kbase.utils.file_utils import guess_content_type


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _chunk_options(args: argparse.Namespace) -> ChunkOptions | None:
    """Build ChunkOptions from CLI flags, or ``None`` to use the server defaults."""
    overrides: dict[str, Any] = {}
    if args.chunk_size is not None:
        overrides["max_chunk_size"] = args.chunk_size
    if args.overlap is not None:
        overrides["overlap"] = args.overlap
    if args.split_by is not None:
        overrides["split_by"] = SplitBy(args.split_by)
    return ChunkOptions(**overrides) if overrides else None


def _filter_from_args(args: argparse.Namespace) -> KnowledgeFileFilter:
    return KnowledgeFileFilter(
        page=getattr(args, "page", 1),
        size=args.size,
        file_ids=args.file_ids or None,
        file_names=args.file_names or None,
        file_sources=args.sources or None,
        content_types=args.content_types or None,
    )


def _has_filters(args: argparse.Namespace) -> bool:
    return any((args.file_ids, args.file_names, args.sources, args.content_types))


def _to_external_file(path: Path, source: str) -> ExternalFile:
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return ExternalFile(
        file_name=path.name,
        file_data=f"data:{guess_content_type(path.name)};base64,{encoded}",
        file_source=source,
    )


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_create_collection(args: argparse.Namespace, service: KnowledgeService) -> int:
    created = await service.create_collection(args.collection, args.dimension)
    if created:
        print(f"Created collection '{args.collection}'")
    else:
        print(f"Collection '{args.collection}' already exists")
    return 0


async def _handle_upload(args: argparse.Namespace, service: KnowledgeService) -> int:
    files: list[ExternalFile] = []
    for raw in args.files:
        path = Path(raw)
        if not path.is_file():
            print(f"Error: not a file: {raw}", file=sys.stderr)
            return 1
        files.append(_to_external_file(path, args.source))

    print(f"Uploading {len(files)} file(s) to '{args.collection}'")
    result = await service.upload_documents(
        args.collection, files, _chunk_options(args), user_id=args.user
    )

    print("\nUpload complete:")
    print(f"  Succeeded: {len(result.success)}")
    print(f"  Failed:    {len(result.failed)}")
    for item in result.details:
        reason = f" ({item.reason})" if item.reason else ""
        print(f"    {item.status.value:<8} {item.file_name}{reason}")
    return 0 if not result.failed else 2


async def _handle_import(args: argparse.Namespace, service: KnowledgeService) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: not a file: {args.file}", file=sys.stderr)
        return 1

    options = _chunk_options(args) or ChunkOptions()
    contents = TextChunker().chop(path.read_text(encoding="utf-8-sig"), options)
    ref_data = DocMetaRefData(url=args.ref_url, name=args.ref_name) if args.ref_url else None
    file_name = args.name or path.name

    ok = await service.import_document_content(
        args.collection,
        file_name,
        args.source,
        contents,
        ref_data=ref_data,
        user_id=args.user,
    )
    if not ok:
        print(f"Import of '{file_name}' failed", file=sys.stderr)
        return 2
    print(f"Imported '{file_name}' ({len(contents)} chunks)")
    return 0


async def _handle_list(args: argparse.Namespace, service: KnowledgeService) -> int:
    page = await service.get_paged_documents(args.collection, _filter_from_args(args))

    print(f"Documents in '{args.collection}': {page.count} total")
    print("=" * 60)
    for doc in page.items:
        print(f"  {doc.file_id}  {doc.file_name:<30} {doc.file_source:<10} {doc.content_type}")
    return 0


async def _handle_delete(args: argparse.Namespace, service: KnowledgeService) -> int:
    if args.file_id:
        ok = await service.delete_document(args.collection, args.file_id)
        print(f"Deleted {args.file_id}" if ok else f"Delete of {args.file_id} failed")
        return 0 if ok else 2

    if not _has_filters(args) or not args.all_matching:
        print(
            "Error: pass --file-id, or at least one filter together with --all-matching",
            file=sys.stderr,
        )
        return 1

    ok = await service.delete_documents(args.collection, _filter_from_args(args))
    print("Deleted matching documents" if ok else "No matching documents")
    return 0


async def _handle_get(args: argparse.Namespace, service: KnowledgeService) -> int:
    binary = await service.get_document_binary_data(args.collection, args.file_id)
    output = Path(args.output or binary.file_name)
    output.write_bytes(binary.data)
    print(f"Wrote {len(binary.data)} bytes ({binary.content_type}) to {output}")
    return 0


_HANDLERS = {
    "create-collection": _handle_create_collection,
    "upload": _handle_upload,
    "import": _handle_import,
    "list": _handle_list,
    "delete": _handle_delete,
    "get": _handle_get,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_chunk_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--chunk-size", type=int, dest="chunk_size", help="Max characters per chunk")
    parser.add_argument("--overlap", type=int, help="Characters shared by consecutive chunks")
    parser.add_argument(
        "--split-by",
        dest="split_by",
        choices=[s.value for s in SplitBy],
        help="Preferred chunk boundary",
    )


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--size", type=int, default=10, help="Page size (default: 10)")
    parser.add_argument("--file-name", action="append", dest="file_names", help="Match file name")
    parser.add_argument("--source", action="append", dest="sources", help="Match file source")
    parser.add_argument(
        "--content-type", action="append", dest="content_types", help="Match content type"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m kbase.cli",
        description="Manage knowledge-base documents.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Knowledge-base commands")

    # -- create-collection --
    create_parser = subparsers.add_parser("create-collection", help="Create a vector collection")
    create_parser.add_argument("collection")
    create_parser.add_argument(
        "--dimension", type=int, help="Vector size (default: the embedding model's)"
    )

    # -- upload --
    upload_parser = subparsers.add_parser("upload", help="Upload local files")
    upload_parser.add_argument("collection")
    upload_parser.add_argument("files", nargs="+", help="Paths of files to upload")
    upload_parser.add_argument("--source", default="cli", help="File source tag (default: cli)")
    upload_parser.add_argument("--user", help="User id recorded on the documents")
    _add_chunk_arguments(upload_parser)

    # -- import --
    import_parser = subparsers.add_parser("import", help="Chop a text file and import its chunks")
    import_parser.add_argument("collection")
    import_parser.add_argument("file", help="UTF-8 text file")
    import_parser.add_argument("--name", help="Document name (default: the file name)")
    import_parser.add_argument("--source", default="cli", help="File source tag (default: cli)")
    import_parser.add_argument("--ref-url", dest="ref_url", help="Reference URL for the document")
    import_parser.add_argument("--ref-name", dest="ref_name", help="Reference display name")
    import_parser.add_argument("--user", help="User id recorded on the document")
    _add_chunk_arguments(import_parser)

    # -- list --
    list_parser = subparsers.add_parser("list", help="List documents")
    list_parser.add_argument("collection")
    list_parser.add_argument("--page", type=int, default=1, help="1-based page (default: 1)")
    list_parser.add_argument("--file-id", action="append", dest="file_ids", help="Match file id")
    _add_filter_arguments(list_parser)

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete documents")
    delete_parser.add_argument("collection")
    delete_parser.add_argument("--file-id", dest="file_id", help="Delete a single document")
    delete_parser.add_argument(
        "--all-matching",
        action="store_true",
        dest="all_matching",
        help="Delete every document matching the filters",
    )
    delete_parser.set_defaults(file_ids=None)
    _add_filter_arguments(delete_parser)

    # -- get --
    get_parser = subparsers.add_parser("get", help="Download a document's original bytes")
    get_parser.add_argument("collection")
    get_parser.add_argument("file_id")
    get_parser.add_argument("--output", "-o", help="Output path (default: the document name)")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, components: dict[str, Any] | None) -> int:
    from kbase.main import build_knowledge_service, close_components, initialize_components

    built = components or build_knowledge_service(Settings())
    await initialize_components(built)
    try:
        return await _HANDLERS[args.command](args, built["knowledge_service"])
    except (KnowledgeBaseError, PydanticValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_components(built)


def run(argv: list[str] | None = None, components: dict[str, Any] | None = None) -> int:
    """Parse *argv*, execute the command and return the exit code.

    *components* (see ``kbase.main.build_knowledge_service``) replaces the
    providers configured in the environment.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1
    return asyncio.run(_run(args, components))


def main() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
