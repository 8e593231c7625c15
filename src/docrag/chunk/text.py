"""Word-based text splitters: paragraph-aware and sliding window.

Sizes are whitespace-delimited word counts, not bytes or tokens.
"""

from __future__ import annotations

import logging
import re

from docrag.exceptions import ChunkError

__all__ = ["count_words", "split_semantic", "split_sliding_window"]

logger = logging.getLogger(__name__)

# Blank lines, or a newline directly before a markdown-style heading
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+|\n(?=#{1,3}\s)")


def count_words(text: str) -> int:
    """Count whitespace-delimited words in text."""
    return len(text.split())


def _check_sizes(chunk_size: int, overlap: int) -> None:
    if chunk_size < 1:
        raise ChunkError(f"chunk_size must be >= 1, got {chunk_size}")
    if not 0 <= overlap < chunk_size:
        raise ChunkError(f"chunk_overlap must be in [0, {chunk_size}), got {overlap}")


def split_sliding_window(
    text: str,
    chunk_size: int,
    overlap: int,
    min_size: int,
) -> list[str]:
    """Slide a fixed window of *chunk_size* words with *overlap* words shared.

    Text that fits in one window is returned whole. Windows shorter than
    *min_size* are dropped, and the walk stops once the next window would
    only repeat the overlap of the previous one.
    """
    _check_sizes(chunk_size, overlap)

    words = text.split()
    if not words:
        return []
    if len(words) <= chunk_size:
        return [text]

    step = chunk_size - overlap
    chunks: list[str] = []
    start = 0
    while start < len(words):
        window = words[start : start + chunk_size]
        if len(window) >= min_size:
            chunks.append(" ".join(window))

        start += step
        if start >= len(words) - overlap and chunks:
            break

    return chunks


def split_semantic(
    text: str,
    chunk_size: int,
    overlap: int,
    min_size: int,
) -> list[str]:
    """Greedily pack paragraphs into chunks of at most *chunk_size* words.

    When a chunk closes, its trailing paragraphs (up to *overlap* words) seed
    the next one. A paragraph larger than *chunk_size* is emitted on its own,
    split by :func:`split_sliding_window`. Chunks under *min_size* words are
    dropped.
    """
    _check_sizes(chunk_size, overlap)

    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text)]
    chunks: list[str] = []
    current: list[str] = []
    current_size = 0

    for paragraph in paragraphs:
        if not paragraph:
            continue
        words = count_words(paragraph)

        if words > chunk_size:
            if current:
                chunks.append("\n\n".join(current))
                current = []
                current_size = 0
            chunks.extend(split_sliding_window(paragraph, chunk_size, overlap, min_size))
            continue

        if current and current_size + words > chunk_size:
            chunks.append("\n\n".join(current))

            carried: list[str] = []
            carried_size = 0
            for previous in reversed(current):
                if carried_size >= overlap:
                    break
                carried.insert(0, previous)
                carried_size += count_words(previous)

            current = carried
            current_size = carried_size

        current.append(paragraph)
        current_size += words

    if current and current_size >= min_size:
        chunks.append("\n\n".join(current))

    return [c for c in chunks if count_words(c) >= min_size]
