"""Process-wide application context.

One ``AppContext`` is built per process and passed to every entry point, so
the store connection and embedding client are shared instead of living in
module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docrag.catalog import SourceCatalog
from docrag.chunk import PageChunker
from docrag.crawl import Crawler
from docrag.embed import OllamaEmbedder
from docrag.pipeline import Pipeline
from docrag.search import SearchEngine
from docrag.store import ChromaStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from docrag.chunk.base import BaseChunker
    from docrag.config import DocragConfig
    from docrag.embed.base import BaseEmbedder
    from docrag.store.base import BaseStore

__all__ = ["AppContext"]

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Holds configuration and the shared backend clients."""

    config: DocragConfig
    embedder: BaseEmbedder
    store: BaseStore
    chunker: BaseChunker = field(default_factory=PageChunker)
    crawler_factory: Callable[[DocragConfig], Crawler] = Crawler

    @classmethod
    def from_config(cls, config: DocragConfig) -> AppContext:
        """Build the default Ollama + ChromaDB context.

        No connection is made here; the store connects on first use.
        """
        return cls(config=config, embedder=OllamaEmbedder(config), store=ChromaStore(config))

    def crawler(self) -> Crawler:
        """A fresh crawler; each crawl gets its own rate-limit schedule."""
        return self.crawler_factory(self.config)

    def pipeline(self) -> Pipeline:
        return Pipeline(
            chunker=self.chunker,
            embedder=self.embedder,
            store=self.store,
            config=self.config,
        )

    def search_engine(self) -> SearchEngine:
        return SearchEngine(embedder=self.embedder, store=self.store, config=self.config)

    def catalog(self) -> SourceCatalog:
        return SourceCatalog(store=self.store, config=self.config)
