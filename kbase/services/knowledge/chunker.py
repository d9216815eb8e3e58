"""Lossless text chunking with overlapping character windows.

Splits document text into chunks of at most ``max_chunk_size`` characters
for embedding.  Chunk boundaries are placed at the last natural break that
fits inside the window:

1. **paragraph** -- a blank line (``\\n\\n``)
2. **sentence** -- ``.``, ``!`` or ``?`` followed by whitespace, using an
   abbreviation-aware mask so "Dr. Smith" is not a sentence end
3. **word** -- any whitespace run

``split_by`` selects the coarsest break to try; finer breaks are used as
fallbacks, and a hard cut at ``max_chunk_size`` is the last resort.

Consecutive chunks share exactly ``overlap`` characters, and nothing is
trimmed or re-joined, so the chunks reassemble into the normalised text::

    chunks[0] + "".join(c[overlap:] for c in chunks[1:]) == normalised
"""

from __future__ import annotations

import bisect
import re

import structlog

from kbase.models.knowledge import ChunkOptions, SplitBy

logger = structlog.get_logger(logger_name=__name__)

# Common abbreviations that should NOT end a sentence.
_ABBREVIATIONS = (
    "Dr",
    "Mr",
    "Mrs",
    "Ms",
    "Prof",
    "Jr",
    "Sr",
    "St",
    "Ave",
    "Blvd",
    "Vol",
    "No",
    "vs",
    "etc",
    "approx",
    "dept",
    "est",
    "govt",
    "inc",
    "ltd",
    "co",
    "ft",
    "e.g",
    "i.e",
)

_ABBREVIATION_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(a) for a in _ABBREVIATIONS) + r")\.",
    re.IGNORECASE,
)
_PARAGRAPH_RE = re.compile(r"\n[ \t]*\n\s*")
_SENTENCE_RE = re.compile(r"[.!?]+[\"')\]]*\s+")
_WHITESPACE_RE = re.compile(r"\s+")

# Boundary levels tried for each split_by, coarsest first.
_LEVELS: dict[SplitBy, tuple[str, ...]] = {
    SplitBy.PARAGRAPH: ("paragraph", "sentence", "word"),
    SplitBy.SENTENCE: ("sentence", "word"),
    SplitBy.WORD: ("word",),
    SplitBy.CHARACTER: (),
}


class TextChunker:
    """Splits text into overlapping windows that end on natural boundaries.

    The chunker is stateless and deterministic: the same text and options
    always yield the same chunks.
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chop(self, text: str, options: ChunkOptions | None = None) -> list[str]:
        """Split *text* into chunks according to *options*.

        Parameters
        ----------
        text:
            The full document text.
        options:
            Chunk size, overlap and preferred boundary.  Defaults to
            :class:`ChunkOptions` defaults (1024 chars, 12 overlap, sentence).

        Returns
        -------
        list[str]
            Chunks in document order.  Empty or whitespace-only input
            returns an empty list.
        """
        opts = options or ChunkOptions()
        normalised = self.normalise(text)
        if not normalised:
            return []

        size = opts.max_chunk_size
        overlap = opts.overlap
        boundaries = [self._boundaries(normalised, level) for level in _LEVELS[opts.split_by]]

        chunks: list[str] = []
        pos = 0
        length = len(normalised)
        while True:
            limit = pos + size
            if limit >= length:
                chunks.append(normalised[pos:])
                break

            # A cut must leave more than ``overlap`` new characters so the
            # next window starts after this one.
            end = self._last_boundary(boundaries, lower=pos + overlap, upper=limit)
            if end is None:
                end = limit
            chunks.append(normalised[pos:end])
            pos = end - overlap

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            text_length=length,
            max_chunk_size=size,
            overlap=overlap,
            split_by=opts.split_by.value,
        )
        return chunks

    @staticmethod
    def normalise(text: str) -> str:
        """Unify line endings to ``\\n`` and strip outer whitespace."""
        if not text:
            return ""
        return text.replace("\r\n", "\n").replace("\r", "\n").strip()

    # ------------------------------------------------------------------
    # Boundary detection
    # ------------------------------------------------------------------

    @staticmethod
    def _boundaries(text: str, level: str) -> list[int]:
        """Return sorted cut positions for *level*.

        A cut position is the index where the next chunk would start, i.e.
        just after the separator.
        """
        if level == "paragraph":
            return [m.end() for m in _PARAGRAPH_RE.finditer(text)]
        if level == "sentence":
            # Mask abbreviation periods with a same-length placeholder so
            # indices stay aligned with the original text.
            masked = _ABBREVIATION_RE.sub(lambda m: m.group(0)[:-1] + "\x00", text)
            return [m.end() for m in _SENTENCE_RE.finditer(masked)]
        return [m.end() for m in _WHITESPACE_RE.finditer(text)]

    @staticmethod
    def _last_boundary(levels: list[list[int]], lower: int, upper: int) -> int | None:
        """Return the last cut in ``(lower, upper]`` from the first level that has one."""
        for positions in levels:
            idx = bisect.bisect_right(positions, upper) - 1
            if idx >= 0 and positions[idx] > lower:
                return positions[idx]
        return None
