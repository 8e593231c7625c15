"""Page chunker with contextual retrieval metadata.

Each chunk carries a short document-level context string that is prepended
to the chunk text for embedding only, plus a keyword set for lexical search.
Chunk IDs derive from the page URL and chunk index, so re-indexing a page
overwrites its previous chunks instead of duplicating them.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from docrag.chunk.base import BaseChunker
from docrag.chunk.keywords import extract_keywords
from docrag.chunk.text import split_semantic, split_sliding_window
from docrag.exceptions import ChunkError
from docrag.types import Chunk, ChunkMetadata

if TYPE_CHECKING:
    from docrag.config import DocragConfig
    from docrag.types import CrawledPage

__all__ = ["PageChunker", "generate_context", "make_chunk_id"]

logger = logging.getLogger(__name__)

_CONTEXT_PREVIEW_CHARS = 200

STRATEGIES = frozenset({"semantic", "sliding"})


def generate_context(page: CrawledPage) -> str:
    """Build the document context string for a page."""
    first_paragraph = page.content.split("\n\n", 1)[0][:_CONTEXT_PREVIEW_CHARS]
    return f'Document: "{page.title}" from {page.url}. {first_paragraph}...'


def make_chunk_id(url: str, index: int) -> str:
    """Generate a deterministic chunk ID from the page URL and chunk index."""
    url_hash = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return f"{url_hash}-{index}"


class PageChunker(BaseChunker):
    """Splits crawled pages into context-annotated chunks."""

    def chunk(
        self,
        page: CrawledPage,
        config: DocragConfig,
        semantic: bool | None = None,
    ) -> list[Chunk]:
        """Split a page into chunks using the semantic or sliding-window strategy.

        Raises:
            ChunkError: If the chunk settings are invalid or splitting fails.
        """
        try:
            return self._do_chunk(page, config, semantic)
        except ChunkError:
            raise
        except Exception as e:
            logger.error("Failed to chunk page %s: %s", page.url, e)
            raise ChunkError(f"Failed to chunk page {page.url}: {e}") from e

    def _do_chunk(
        self,
        page: CrawledPage,
        config: DocragConfig,
        semantic: bool | None,
    ) -> list[Chunk]:
        cfg = config.chunk
        if semantic is None:
            if cfg.strategy not in STRATEGIES:
                raise ChunkError(
                    f"Unknown chunk strategy {cfg.strategy!r}. Available: {sorted(STRATEGIES)}"
                )
            semantic = cfg.strategy == "semantic"

        split = split_semantic if semantic else split_sliding_window
        texts = split(page.content, cfg.chunk_size, cfg.chunk_overlap, cfg.min_chunk_size)
        if not texts:
            logger.debug("No chunks produced for %s", page.url)
            return []

        context = generate_context(page)
        total = len(texts)
        chunks = [
            Chunk(
                chunk_id=make_chunk_id(page.url, i),
                text=text,
                metadata=ChunkMetadata(
                    url=page.url,
                    title=page.title,
                    chunk_index=i,
                    total_chunks=total,
                    context=context,
                    keywords=tuple(extract_keywords(text)),
                ),
            )
            for i, text in enumerate(texts)
        ]

        logger.info(
            "Chunked %s into %d chunks (%s, size=%d, overlap=%d)",
            page.url,
            total,
            "semantic" if semantic else "sliding",
            cfg.chunk_size,
            cfg.chunk_overlap,
        )
        return chunks
