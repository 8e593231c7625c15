"""Abstract base class for chunking strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docrag.config import DocragConfig
    from docrag.types import Chunk, CrawledPage

__all__ = ["BaseChunker"]

logger = logging.getLogger(__name__)


class BaseChunker(ABC):
    """Base class for all chunking strategies.

    Subclasses split a ``CrawledPage`` into a list of ``Chunk`` objects.
    """

    @abstractmethod
    def chunk(
        self,
        page: CrawledPage,
        config: DocragConfig,
        semantic: bool | None = None,
    ) -> list[Chunk]:
        """Split a crawled page into chunks.

        Args:
            page: The page to chunk.
            config: Configuration (chunk size, overlap, strategy).
            semantic: Per-call strategy override; ``None`` uses
                ``config.chunk.strategy``.

        Returns:
            List of chunks with metadata.

        Raises:
            ChunkError: If chunking fails.
        """

    def chunk_pages(
        self,
        pages: list[CrawledPage],
        config: DocragConfig,
        semantic: bool | None = None,
    ) -> list[Chunk]:
        """Chunk several pages, preserving page order."""
        chunks: list[Chunk] = []
        for page in pages:
            chunks.extend(self.chunk(page, config, semantic=semantic))
        return chunks
