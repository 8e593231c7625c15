"""Abstract base class for embedding providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from docrag.types import EmbeddedChunk

if TYPE_CHECKING:
    from docrag.types import Chunk

__all__ = ["BaseEmbedder"]

logger = logging.getLogger(__name__)


class BaseEmbedder(ABC):
    """Base class for all embedding providers.

    Subclasses turn text into fixed-dimension vectors.
    """

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts, preserving order.

        Raises:
            EmbeddingError: If embedding generation fails.
        """

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Generate an embedding for a search query.

        Raises:
            EmbeddingError: If embedding generation fails.
        """

    @abstractmethod
    def ensure_model_available(self) -> bool:
        """Make sure the embedding model can be used.

        Returns:
            False if the backend is unreachable or the model cannot be prepared.
        """

    def embed_chunks(self, chunks: list[Chunk]) -> list[EmbeddedChunk]:
        """Embed chunks using their contextual text (context + chunk).

        Raises:
            EmbeddingError: If embedding generation fails.
        """
        if not chunks:
            return []
        vectors = self.embed_texts([c.embedding_text for c in chunks])
        return [
            EmbeddedChunk(chunk=chunk, embedding=tuple(vec))
            for chunk, vec in zip(chunks, vectors, strict=True)
        ]
