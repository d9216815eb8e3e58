"""Turns raw document bytes into text chunks, dispatching on content type.

Readers are registered per MIME type.  Lookup is case-insensitive and
ignores MIME parameters, so ``Text/Plain; charset=utf-8`` resolves to the
``text/plain`` reader.  Content types without a reader produce no chunks.
"""

from __future__ import annotations

from typing import Callable

import structlog

from kbase.models.knowledge import ChunkOptions
from kbase.services.knowledge.chunker import TextChunker
from kbase.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

Reader = Callable[[bytes, ChunkOptions], list[str]]

_TEXT_TYPES = ("text/plain", "text/markdown", "text/csv")
_PDF_TYPE = "application/pdf"


def normalise_content_type(content_type: str | None) -> str:
    """Return the bare, lower-cased MIME type without parameters."""
    return (content_type or "").split(";", 1)[0].strip().lower()


class ContentExtractor:
    """Maps a declared content type to a reader that yields chunks."""

    def __init__(self, chunker: TextChunker | None = None) -> None:
        self._chunker = chunker or TextChunker()
        self._readers: dict[str, Reader] = {}
        for content_type in _TEXT_TYPES:
            self.register(content_type, self._read_text)
        self.register(_PDF_TYPE, self._read_pdf)

    def register(self, content_type: str, reader: Reader) -> None:
        """Install *reader* for *content_type*, replacing any existing one."""
        self._readers[normalise_content_type(content_type)] = reader

    def supports(self, content_type: str | None) -> bool:
        return normalise_content_type(content_type) in self._readers

    def extract(
        self,
        content_type: str | None,
        data: bytes,
        options: ChunkOptions | None = None,
    ) -> list[str]:
        """Return the chunks for *data*, or ``[]`` if nothing can be extracted."""
        key = normalise_content_type(content_type)
        reader = self._readers.get(key)
        if reader is None:
            logger.info("extraction_unsupported_content_type", content_type=key or None)
            return []

        try:
            return reader(data, options or ChunkOptions())
        except ExtractionError as exc:
            logger.warning("extraction_failed", content_type=key, error=str(exc))
            return []

    # ------------------------------------------------------------------
    # Built-in readers
    # ------------------------------------------------------------------

    def _read_text(self, data: bytes, options: ChunkOptions) -> list[str]:
        try:
            # utf-8-sig drops a leading BOM.
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                message=f"Content is not valid UTF-8 text: {exc.reason} at byte {exc.start}",
            ) from exc
        return self._chunker.chop(text, options)

    @staticmethod
    def _read_pdf(data: bytes, options: ChunkOptions) -> list[str]:
        # TODO: PDF text extraction is not implemented; add a PDF reader here.
        logger.info("extraction_pdf_not_implemented", size=len(data))
        return []
