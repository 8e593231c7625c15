"""Shared fixtures and in-memory backends for docrag tests."""

from __future__ import annotations

import math

import pytest

from docrag.config import DocragConfig
from docrag.context import AppContext
from docrag.embed.base import BaseEmbedder
from docrag.store.base import BaseStore
from docrag.types import EmbeddedChunk, StoredChunk, StoreHit


class FakeEmbedder(BaseEmbedder):
    """Deterministic bag-of-letters embedder; similar texts get similar vectors."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.embed_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    @staticmethod
    def vector(text: str) -> list[float]:
        counts = [0.0] * 26
        for ch in text.lower():
            if "a" <= ch <= "z":
                counts[ord(ch) - ord("a")] += 1.0
        norm = math.sqrt(sum(c * c for c in counts)) or 1.0
        return [c / norm for c in counts]

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls.append(list(texts))
        return [self.vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self.vector(text)

    def ensure_model_available(self) -> bool:
        return self.available


class MemoryStore(BaseStore):
    """Insertion-ordered in-memory store with cosine distance."""

    def __init__(self) -> None:
        self.records: dict[str, tuple[StoredChunk, tuple[float, ...]]] = {}
        self.get_page_calls: list[tuple[int, int]] = []
        self.delete_calls: list[list[str]] = []

    def add(self, chunks: list[EmbeddedChunk]) -> int:
        for c in chunks:
            meta = c.chunk.metadata
            record = StoredChunk(
                chunk_id=c.chunk.chunk_id,
                text=c.chunk.text,
                url=meta.url,
                title=meta.title,
                chunk_index=meta.chunk_index,
                total_chunks=meta.total_chunks,
                keywords=meta.keywords,
                indexed_at="2024-01-01T00:00:00+00:00",
            )
            self.records[record.chunk_id] = (record, c.embedding)
        return len(chunks)

    def put(self, record: StoredChunk, embedding: tuple[float, ...] = ()) -> None:
        self.records[record.chunk_id] = (record, embedding)

    def query(self, embedding: list[float], n_results: int) -> list[StoreHit]:
        hits = [
            StoreHit(record=record, distance=1.0 - _cosine(embedding, vec))
            for record, vec in self.records.values()
        ]
        hits.sort(key=lambda h: h.distance)
        return hits[:n_results]

    def get_page(
        self,
        limit: int,
        offset: int,
        include_documents: bool = True,
    ) -> list[StoredChunk]:
        self.get_page_calls.append((limit, offset))
        page = [record for record, _ in list(self.records.values())[offset : offset + limit]]
        if include_documents:
            return page
        return [
            StoredChunk(
                chunk_id=r.chunk_id,
                text="",
                url=r.url,
                title=r.title,
                chunk_index=r.chunk_index,
                total_chunks=r.total_chunks,
                keywords=r.keywords,
                indexed_at=r.indexed_at,
            )
            for r in page
        ]

    def delete(self, ids: list[str]) -> int:
        self.delete_calls.append(list(ids))
        for chunk_id in ids:
            self.records.pop(chunk_id, None)
        return len(ids)

    def count(self) -> int:
        return len(self.records)


def _cosine(a: list[float], b: tuple[float, ...]) -> float:
    if not a or not b:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b, strict=False))
    na = math.sqrt(sum(x * x for x in a)) or 1.0
    nb = math.sqrt(sum(y * y for y in b)) or 1.0
    return dot / (na * nb)


def make_record(
    chunk_id: str,
    url: str,
    text: str = "",
    title: str = "",
    keywords: tuple[str, ...] = (),
    indexed_at: str = "2024-01-01T00:00:00+00:00",
) -> StoredChunk:
    return StoredChunk(
        chunk_id=chunk_id,
        text=text,
        url=url,
        title=title,
        keywords=keywords,
        indexed_at=indexed_at,
    )


@pytest.fixture
def config() -> DocragConfig:
    """Default config with the crawl and embed delays switched off."""
    cfg = DocragConfig()
    cfg.crawler.request_delay = 0.0
    cfg.embedding.batch_delay = 0.0
    return cfg


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def app_context(config: DocragConfig, embedder: FakeEmbedder, store: MemoryStore) -> AppContext:
    return AppContext(config=config, embedder=embedder, store=store)
