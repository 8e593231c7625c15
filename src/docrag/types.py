"""Pipeline data contracts for docrag.

Frozen dataclasses that flow between pipeline stages:
  URL → CrawledPage → list[Chunk] → list[EmbeddedChunk] → stored
  query → list[SearchResult]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "CrawledPage",
    "EmbeddedChunk",
    "SearchResult",
    "SourceInfo",
    "StoreHit",
    "StoredChunk",
]


@dataclass(frozen=True)
class CrawledPage:
    """A fetched and parsed HTML page."""

    url: str
    title: str
    content: str
    links: tuple[str, ...] = ()
    crawled_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata attached to every chunk flowing through the pipeline."""

    url: str
    title: str = ""
    chunk_index: int = 0
    total_chunks: int = 1
    context: str = ""
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class Chunk:
    """A single chunk of page text with metadata, ready for embedding."""

    chunk_id: str
    text: str
    metadata: ChunkMetadata

    @property
    def embedding_text(self) -> str:
        """Text sent to the embedder: document context followed by the chunk."""
        if not self.metadata.context:
            return self.text
        return f"{self.metadata.context}\n\n{self.text}"


@dataclass(frozen=True)
class EmbeddedChunk:
    """A chunk with its embedding vector attached."""

    chunk: Chunk
    embedding: tuple[float, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StoredChunk:
    """A chunk record as read back from the vector store."""

    chunk_id: str
    text: str
    url: str
    title: str = ""
    chunk_index: int = 0
    total_chunks: int = 0
    keywords: tuple[str, ...] = ()
    indexed_at: str = ""


@dataclass(frozen=True)
class StoreHit:
    """A nearest-neighbour match returned by the store."""

    record: StoredChunk
    distance: float


@dataclass(frozen=True)
class SearchResult:
    """A search result.

    ``score`` depends on the stage that produced it: ``1 - distance`` for
    semantic hits, match ratio for lexical hits, summed reciprocal rank
    after fusion.
    """

    text: str
    url: str
    title: str
    score: float

    def to_dict(self) -> dict[str, object]:
        return {"text": self.text, "url": self.url, "title": self.title, "score": self.score}


@dataclass(frozen=True)
class SourceInfo:
    """Aggregated view of one indexed documentation site."""

    url: str
    title: str
    page_count: int
    chunk_count: int
    indexed_at: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "title": self.title,
            "pageCount": self.page_count,
            "chunkCount": self.chunk_count,
            "indexedAt": self.indexed_at,
        }
