"""Hybrid retrieval: semantic search, lexical search and rank fusion."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docrag.chunk.keywords import tokenize
from docrag.search.fusion import dedupe_best, expand_query, reciprocal_rank_fusion
from docrag.types import SearchResult

if TYPE_CHECKING:
    from docrag.config import DocragConfig
    from docrag.embed.base import BaseEmbedder
    from docrag.store.base import BaseStore

__all__ = ["SearchEngine"]

logger = logging.getLogger(__name__)


class SearchEngine:
    """Runs semantic and lexical retrieval over a store and fuses the results.

    Usage::

        engine = SearchEngine(embedder=embedder, store=store, config=config)
        results = engine.search("configure logging", top_k=5)
    """

    def __init__(self, embedder: BaseEmbedder, store: BaseStore, config: DocragConfig) -> None:
        self.embedder = embedder
        self.store = store
        self.config = config

    def search(
        self,
        query: str,
        top_k: int,
        hybrid: bool = True,
        expand: bool = False,
    ) -> list[SearchResult]:
        """Return up to *top_k* results for *query*.

        With ``hybrid`` the semantic and lexical rankings are merged by
        Reciprocal Rank Fusion; otherwise only semantic results are returned.
        ``expand`` adds phrasing variants to the semantic search.

        Raises:
            EmbeddingError: If the query cannot be embedded.
            StoreError: If the store cannot be read.
        """
        candidates = top_k * 2
        queries = expand_query(query) if expand else [query]

        semantic = self.semantic_search(queries, candidates)
        if not hybrid:
            return semantic[:top_k]

        lexical = self.lexical_search(query, candidates)
        fused = reciprocal_rank_fusion([semantic, lexical], top_k, k=self.config.search.rrf_k)
        logger.info(
            "Search %r: %d semantic, %d lexical, %d fused",
            query,
            len(semantic),
            len(lexical),
            len(fused),
        )
        return fused

    def semantic_search(self, queries: list[str], n_results: int) -> list[SearchResult]:
        """Nearest-neighbour search for each query variant, merged and deduplicated."""
        results: list[SearchResult] = []
        for query in queries:
            embedding = self.embedder.embed_query(query)
            for hit in self.store.query(embedding, n_results):
                results.append(
                    SearchResult(
                        text=hit.record.text,
                        url=hit.record.url,
                        title=hit.record.title,
                        score=1.0 - hit.distance,
                    )
                )
        return dedupe_best(results)

    def lexical_search(self, query: str, limit: int) -> list[SearchResult]:
        """Score every stored chunk by the share of query words it contains.

        A query word matches when it is one of the chunk's keywords or occurs
        anywhere in its lowercased text. The collection is scanned page by
        page, so cost grows with collection size.
        """
        query_words = tokenize(query)
        if not query_words:
            return []

        page_size = self.config.store.page_size
        scored: list[SearchResult] = []
        offset = 0

        while True:
            page = self.store.get_page(limit=page_size, offset=offset)
            if not page:
                break

            for record in page:
                keywords = set(record.keywords)
                text = record.text.lower()
                matches = sum(1 for word in query_words if word in keywords or word in text)
                if matches > 0:
                    scored.append(
                        SearchResult(
                            text=record.text,
                            url=record.url,
                            title=record.title,
                            score=matches / len(query_words),
                        )
                    )

            offset += len(page)
            if len(page) < page_size:
                break

        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:limit]
