"""ChromaDB vector store.

Talks to a ChromaDB server over HTTP by default, or to a local
``PersistentClient`` when ``store.persist_path`` is set. The collection
handle is created lazily on first use and shared afterwards.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import chromadb

from docrag.exceptions import StoreError
from docrag.store.base import BaseStore
from docrag.types import StoredChunk, StoreHit

if TYPE_CHECKING:
    from collections.abc import Mapping

    from docrag.config import DocragConfig
    from docrag.types import EmbeddedChunk

__all__ = ["ChromaStore"]

logger = logging.getLogger(__name__)


def _as_int(value: object) -> int:
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return 0


class ChromaStore(BaseStore):
    """Vector store backed by a ChromaDB collection in cosine space.

    Usage::

        store = ChromaStore(config)
        store.add(embedded_chunks)
        hits = store.query(query_embedding, n_results=10)

    The first call that needs the collection connects and runs
    ``get_or_create_collection`` under a lock; concurrent first callers wait
    for that result instead of creating their own.
    """

    def __init__(self, config: DocragConfig) -> None:
        self._host = config.store.host
        self._persist_path = config.store.persist_path
        self._collection_name = config.store.collection_name
        self._lock = threading.Lock()
        self._collection: Any = None

    def _connect(self) -> Any:
        if self._persist_path:
            return chromadb.PersistentClient(path=self._persist_path)

        parsed = urlsplit(self._host)
        ssl = parsed.scheme == "https"
        return chromadb.HttpClient(
            host=parsed.hostname or "localhost",
            port=parsed.port or (443 if ssl else 8000),
            ssl=ssl,
        )

    @property
    def collection(self) -> Any:
        """The shared collection handle, created on first access.

        Raises:
            StoreError: If the backend cannot be reached.
        """
        if self._collection is not None:
            return self._collection

        with self._lock:
            if self._collection is None:
                location = self._persist_path or self._host
                try:
                    client = self._connect()
                    self._collection = client.get_or_create_collection(
                        name=self._collection_name,
                        metadata={"hnsw:space": "cosine"},
                    )
                except Exception as e:
                    raise StoreError(f"Failed to initialize ChromaDB at {location}: {e}") from e

                logger.info(
                    "ChromaDB store initialized at %s (collection=%s)",
                    location,
                    self._collection_name,
                )
        return self._collection

    def add(self, chunks: list[EmbeddedChunk]) -> int:
        """Upsert embedded chunks into ChromaDB.

        Raises:
            StoreError: If storage fails.
        """
        if not chunks:
            return 0

        indexed_at = datetime.now(UTC).isoformat()
        ids = [c.chunk.chunk_id for c in chunks]
        embeddings = [list(c.embedding) for c in chunks]
        documents = [c.chunk.text for c in chunks]
        metadatas = [
            {
                "url": c.chunk.metadata.url,
                "title": c.chunk.metadata.title,
                "chunkIndex": c.chunk.metadata.chunk_index,
                "totalChunks": c.chunk.metadata.total_chunks,
                "keywords": ",".join(c.chunk.metadata.keywords),
                "indexedAt": indexed_at,
            }
            for c in chunks
        ]

        collection = self.collection
        try:
            collection.upsert(
                ids=ids,
                embeddings=embeddings,
                documents=documents,
                metadatas=metadatas,
            )
        except Exception as e:
            raise StoreError(f"Failed to add {len(chunks)} chunks: {e}") from e

        logger.info("Stored %d chunks", len(chunks))
        return len(chunks)

    def query(self, embedding: list[float], n_results: int) -> list[StoreHit]:
        """Return the nearest records to *embedding*, closest first.

        Raises:
            StoreError: If the query fails.
        """
        total = self.count()
        if total == 0 or n_results < 1:
            return []

        # ChromaDB raises if n_results exceeds the collection size
        try:
            results = self.collection.query(
                query_embeddings=[embedding],
                n_results=min(n_results, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise StoreError(f"Search failed: {e}") from e

        # ChromaDB returns batched results; we query with one embedding
        raw_ids = results.get("ids")
        raw_docs = results.get("documents")
        raw_metas = results.get("metadatas")
        raw_dists = results.get("distances")

        if not raw_ids or not raw_docs or not raw_metas or not raw_dists:
            return []

        hits: list[StoreHit] = []
        for chunk_id, doc, meta, dist in zip(
            raw_ids[0], raw_docs[0], raw_metas[0], raw_dists[0], strict=True
        ):
            if doc is None or not meta:
                continue
            record = self._record_from(chunk_id, doc, meta)
            hits.append(StoreHit(record=record, distance=float(dist)))

        return hits

    def get_page(
        self,
        limit: int,
        offset: int,
        include_documents: bool = True,
    ) -> list[StoredChunk]:
        """Return one page of records.

        Raises:
            StoreError: If the read fails.
        """
        include = ["documents", "metadatas"] if include_documents else ["metadatas"]
        try:
            results = self.collection.get(limit=limit, offset=offset, include=include)
        except Exception as e:
            raise StoreError(f"Failed to read records at offset {offset}: {e}") from e

        ids = results.get("ids") or []
        documents = results.get("documents") or [None] * len(ids)
        metadatas = results.get("metadatas") or [None] * len(ids)

        return [
            self._record_from(chunk_id, doc, meta)
            for chunk_id, doc, meta in zip(ids, documents, metadatas, strict=True)
        ]

    def delete(self, ids: list[str]) -> int:
        """Delete records by ID.

        Raises:
            StoreError: If deletion fails.
        """
        if not ids:
            return 0

        try:
            self.collection.delete(ids=ids)
        except Exception as e:
            raise StoreError(f"Failed to delete {len(ids)} chunks: {e}") from e

        logger.info("Deleted %d chunks", len(ids))
        return len(ids)

    def count(self) -> int:
        """Return the total number of records in the store."""
        try:
            return int(self.collection.count())
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Failed to count chunks: {e}") from e

    @staticmethod
    def _record_from(
        chunk_id: str,
        document: str | None,
        meta: Mapping[str, object] | None,
    ) -> StoredChunk:
        """Decode a ChromaDB record into a StoredChunk."""
        meta = meta or {}
        keywords = str(meta.get("keywords") or "")
        return StoredChunk(
            chunk_id=chunk_id,
            text=document or "",
            url=str(meta.get("url") or ""),
            title=str(meta.get("title") or ""),
            chunk_index=_as_int(meta.get("chunkIndex")),
            total_chunks=_as_int(meta.get("totalChunks")),
            keywords=tuple(k for k in keywords.split(",") if k),
            indexed_at=str(meta.get("indexedAt") or ""),
        )
