"""Entry points exposed to calling agents.

Every function here returns a result object, never raises: validation
problems, blocked URLs, empty results and backend failures all come back as
``success=False`` / ``error=...``. Backend errors are logged in full and
replaced by generic messages so raw backend text never reaches the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docrag.crawl.guard import is_http_url
from docrag.exceptions import BlockedUrlError

if TYPE_CHECKING:
    from docrag.context import AppContext
    from docrag.types import SearchResult, SourceInfo

__all__ = [
    "TOOLS",
    "CrawlAndIndexResult",
    "DeleteSourceResult",
    "ListSourcesResult",
    "SearchDocsResult",
    "ToolSpec",
    "crawl_and_index",
    "delete_source",
    "list_sources",
    "search_docs",
]

logger = logging.getLogger(__name__)

_INDEX_FAILED = "Failed to index documents. Please try again later."
_SEARCH_FAILED = "Search failed. Please try again later."
_LIST_FAILED = "Failed to list sources. Please try again later."
_DELETE_FAILED = "Failed to delete documents. Please try again later."

_ECHO_QUERY_CHARS = 100


@dataclass(frozen=True)
class ToolSpec:
    """Name and description of an entry point, for registration with a transport."""

    name: str
    description: str


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        "crawl_and_index",
        "Crawl a website starting from the given URL and index all pages into the vector "
        "database for semantic search. Use this to add new documentation sources.",
    ),
    ToolSpec(
        "search_docs",
        "Search indexed documents using hybrid search (semantic + keyword) merged with "
        "Reciprocal Rank Fusion. Returns relevant text chunks with source URLs.",
    ),
    ToolSpec(
        "list_sources",
        "List all indexed documentation sources with their page counts and metadata.",
    ),
    ToolSpec(
        "delete_source",
        "Delete all indexed documents from a specific URL/domain.",
    ),
)


@dataclass(frozen=True)
class CrawlAndIndexResult:
    success: bool
    pages_indexed: int
    chunks_created: int
    url: str
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "success": self.success,
            "pagesIndexed": self.pages_indexed,
            "chunksCreated": self.chunks_created,
            "url": self.url,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class SearchDocsResult:
    query: str
    results: list[SearchResult] = field(default_factory=list)
    error: str | None = None

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "results": [r.to_dict() for r in self.results],
            "query": self.query,
            "totalResults": self.total_results,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ListSourcesResult:
    sources: list[SourceInfo] = field(default_factory=list)
    error: str | None = None

    @property
    def total_sources(self) -> int:
        return len(self.sources)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "sources": [s.to_dict() for s in self.sources],
            "totalSources": self.total_sources,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class DeleteSourceResult:
    success: bool
    deleted_chunks: int
    url: str
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "success": self.success,
            "deletedChunks": self.deleted_chunks,
            "url": self.url,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


def _crawl_failure(url: str, error: str) -> CrawlAndIndexResult:
    return CrawlAndIndexResult(
        success=False, pages_indexed=0, chunks_created=0, url=url, error=error
    )


def crawl_and_index(
    ctx: AppContext,
    url: str,
    max_depth: object = None,
    semantic: bool | None = None,
) -> CrawlAndIndexResult:
    """Crawl a site from *url* and index every page found.

    ``max_depth`` defaults to ``crawler.default_max_depth`` and must be a
    non-negative integer; values above ``crawler.max_depth_limit`` are
    clamped by the crawler.
    """
    if max_depth is None:
        max_depth = ctx.config.crawler.default_max_depth
    if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 0:
        return _crawl_failure(url, "max_depth must be a non-negative integer")

    if not isinstance(url, str) or not is_http_url(url):
        return _crawl_failure(str(url), "Invalid URL: must use http or https protocol")

    try:
        model_ready = ctx.embedder.ensure_model_available()
    except Exception:
        logger.error("Checking the embedding model failed", exc_info=True)
        model_ready = False
    if not model_ready:
        return _crawl_failure(url, "Embedding model not available. Is Ollama running?")

    try:
        logger.info("Crawling %s (max_depth=%d)", url, max_depth)
        pages = ctx.crawler().crawl(url, max_depth=max_depth)
    except BlockedUrlError as e:
        logger.warning("Rejected crawl of %s: %s", url, e)
        return _crawl_failure(url, str(e))
    except Exception:
        logger.error("Crawl of %s failed", url, exc_info=True)
        return _crawl_failure(url, _INDEX_FAILED)

    if not pages:
        return _crawl_failure(url, "No pages found to index")

    try:
        chunk_count = ctx.pipeline().process(pages, semantic=semantic)
    except Exception:
        logger.error("Indexing %d pages from %s failed", len(pages), url, exc_info=True)
        return _crawl_failure(url, _INDEX_FAILED)

    logger.info("Indexing complete for %s: %d pages, %d chunks", url, len(pages), chunk_count)
    return CrawlAndIndexResult(
        success=True, pages_indexed=len(pages), chunks_created=chunk_count, url=url
    )


def search_docs(
    ctx: AppContext,
    query: object,
    top_k: object = None,
    hybrid: bool = True,
    expand_query: bool = False,
) -> SearchDocsResult:
    """Search the index for *query*.

    The query is trimmed and must be non-empty and within
    ``search.max_query_length``; ``top_k`` is clamped into
    ``[1, search.max_top_k]``.
    """
    search_cfg = ctx.config.search
    text = query.strip() if isinstance(query, str) else ""

    if len(text) > search_cfg.max_query_length:
        return SearchDocsResult(
            query=text[:_ECHO_QUERY_CHARS] + "...",
            error=f"Query exceeds maximum length of {search_cfg.max_query_length} characters",
        )
    if not text:
        return SearchDocsResult(query="", error="Query must not be empty")

    if not isinstance(top_k, int) or isinstance(top_k, bool):
        top_k = search_cfg.default_top_k
    top_k = min(max(1, top_k), search_cfg.max_top_k)

    try:
        results = ctx.search_engine().search(
            text, top_k=top_k, hybrid=bool(hybrid), expand=bool(expand_query)
        )
    except Exception:
        logger.error("Search for %r failed", text, exc_info=True)
        return SearchDocsResult(query=text, error=_SEARCH_FAILED)

    return SearchDocsResult(query=text, results=results)


def list_sources(ctx: AppContext) -> ListSourcesResult:
    """List every indexed documentation source."""
    try:
        sources = ctx.catalog().list_sources()
    except Exception:
        logger.error("Listing sources failed", exc_info=True)
        return ListSourcesResult(error=_LIST_FAILED)
    return ListSourcesResult(sources=sources)


def delete_source(ctx: AppContext, url: object) -> DeleteSourceResult:
    """Delete every chunk indexed under the base URL of *url*."""
    if not isinstance(url, str) or not is_http_url(url):
        return DeleteSourceResult(
            success=False, deleted_chunks=0, url=str(url), error="Invalid URL"
        )

    try:
        deleted = ctx.catalog().delete_by_url(url)
    except Exception:
        logger.error("Deleting %s failed", url, exc_info=True)
        return DeleteSourceResult(success=False, deleted_chunks=0, url=url, error=_DELETE_FAILED)

    if deleted == 0:
        return DeleteSourceResult(
            success=False,
            deleted_chunks=0,
            url=url,
            error="No documents found matching this URL",
        )

    return DeleteSourceResult(success=True, deleted_chunks=deleted, url=url)
