"""Text segmentation into overlapping, embedding-sized chunks.

The splitter prefers to end a chunk on a real sentence boundary (a
terminator followed by a space and an uppercase letter), falls back to a
word boundary, and hard-cuts only when the search window holds neither.
Consecutive chunks overlap by up to ``overlap`` characters.
"""

from __future__ import annotations

import logging
import re

from rag_ingestion.ingestion.models import Chunk

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_TERMINATORS = ".!?"
# Fraction of the window, counted from its end, scanned for a cut point.
_SEARCH_FRACTION = 0.2


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (any line ending included) to one space."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def _find_cut(text: str, start: int, end: int, max_chars: int, overlap: int) -> int:
    """Return the exclusive end index of the chunk starting at *start*.

    ``end`` is ``start + max_chars`` and is always inside *text*.
    """
    search_start = min(end - overlap, start + int(max_chars * (1 - _SEARCH_FRACTION)))
    search_start = max(search_start, start + 1)

    for i in range(end - 1, search_start - 1, -1):
        if (
            text[i] in _SENTENCE_TERMINATORS
            and text[i + 1 : i + 2] == " "
            and text[i + 2 : i + 3].isupper()
        ):
            return i + 1

    for i in range(end, search_start - 1, -1):
        if text[i] == " ":
            return i

    return end


def segment(
    text: str,
    max_chars: int = 1500,
    overlap: int = 200,
    min_chars: int = 50,
) -> list[Chunk]:
    """Split *text* into ordered, overlapping chunks.

    Parameters
    ----------
    text:
        Plain text, possibly empty. Whitespace is normalised first.
    max_chars:
        Maximum length of each chunk.
    overlap:
        Characters the next chunk steps back from the previous cut.
    min_chars:
        Pieces whose trimmed length is not above this are discarded,
        not merged into a neighbour.

    Returns
    -------
    list[Chunk]
        Chunks in emission order; ``total_chunks`` is the final count on
        every chunk.
    """
    if overlap < 0 or overlap >= max_chars:
        raise ValueError(
            f"overlap ({overlap}) must be >= 0 and < max_chars ({max_chars})"
        )

    cleaned = normalize_whitespace(text)
    length = len(cleaned)
    pieces: list[str] = []

    if length <= max_chars:
        if length > min_chars:
            pieces.append(cleaned)
    else:
        cursor = 0
        while cursor < length:
            end = cursor + max_chars
            if end >= length:
                tail = cleaned[cursor:].strip()
                if len(tail) > min_chars:
                    pieces.append(tail)
                break

            cut = _find_cut(cleaned, cursor, end, max_chars, overlap)
            piece = cleaned[cursor:cut].strip()
            if len(piece) > min_chars:
                pieces.append(piece)

            next_start = cut - overlap
            cursor = next_start if next_start > cursor else cut

    total = len(pieces)
    logger.debug("Created %d chunks from %d characters", total, length)
    return [Chunk(index=i, text=piece, total_chunks=total) for i, piece in enumerate(pieces)]
