"""Abstract base class for vector stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docrag.types import EmbeddedChunk, StoredChunk, StoreHit

__all__ = ["BaseStore"]

logger = logging.getLogger(__name__)


class BaseStore(ABC):
    """Base class for all vector stores.

    Subclasses persist embedded chunks keyed by chunk ID and support
    similarity queries and paginated scans. Records coming back from the
    backend are always decoded into ``StoredChunk``.
    """

    @abstractmethod
    def add(self, chunks: list[EmbeddedChunk]) -> int:
        """Store embedded chunks, overwriting records with the same ID.

        The persisted document is the original chunk text, not the
        contextual text that was embedded.

        Returns:
            Number of chunks stored.

        Raises:
            StoreError: If storage fails.
        """

    @abstractmethod
    def query(self, embedding: list[float], n_results: int) -> list[StoreHit]:
        """Return up to *n_results* nearest records, closest first.

        Raises:
            StoreError: If the query fails.
        """

    @abstractmethod
    def get_page(
        self,
        limit: int,
        offset: int,
        include_documents: bool = True,
    ) -> list[StoredChunk]:
        """Return one page of records in storage order.

        When ``include_documents`` is False the returned records have empty
        ``text``.

        Raises:
            StoreError: If the read fails.
        """

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Delete records by ID.

        Returns:
            Number of IDs submitted for deletion.

        Raises:
            StoreError: If deletion fails.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the total number of records in the store."""
