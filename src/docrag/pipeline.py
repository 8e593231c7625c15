"""Pipeline orchestrator for docrag.

Composes chunker → embedder → store via constructor injection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docrag.exceptions import PipelineError

if TYPE_CHECKING:
    from docrag.chunk.base import BaseChunker
    from docrag.config import DocragConfig
    from docrag.embed.base import BaseEmbedder
    from docrag.store.base import BaseStore
    from docrag.types import CrawledPage

__all__ = ["Pipeline"]

logger = logging.getLogger(__name__)


class Pipeline:
    """Turns crawled pages into stored, embedded chunks.

    All dependencies are injected via the constructor, making the pipeline
    fully testable with mock implementations.

    Usage::

        pipeline = Pipeline(
            chunker=PageChunker(),
            embedder=ollama_embedder,
            store=chroma_store,
            config=config,
        )
        chunk_count = pipeline.process(pages)
    """

    def __init__(
        self,
        chunker: BaseChunker,
        embedder: BaseEmbedder,
        store: BaseStore,
        config: DocragConfig,
    ) -> None:
        self.chunker = chunker
        self.embedder = embedder
        self.store = store
        self.config = config

    def process(self, pages: list[CrawledPage], semantic: bool | None = None) -> int:
        """Run chunk → embed → store for a batch of pages.

        Args:
            pages: Pages produced by the crawler.
            semantic: Chunking strategy override (``None`` = config default).

        Returns:
            Number of chunks stored.

        Raises:
            PipelineError: If any stage fails.
        """
        try:
            chunks = self.chunker.chunk_pages(pages, self.config, semantic=semantic)
            logger.info("Chunked %d pages into %d chunks", len(pages), len(chunks))

            if not chunks:
                logger.warning("No chunks produced for %d pages", len(pages))
                return 0

            embedded = self.embedder.embed_chunks(chunks)
            logger.info("Embedded %d chunks", len(embedded))

            count = self.store.add(embedded)
            logger.info("Stored %d chunks", count)

            return count

        except PipelineError:
            raise
        except Exception as e:
            raise PipelineError(f"Pipeline failed processing {len(pages)} pages: {e}") from e
