"""Source catalog: per-site summaries and deletion by base URL.

A source is identified by its base URL (``scheme://host``). Both operations
walk the store in fixed-size pages and never load the whole collection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from docrag.types import SourceInfo

if TYPE_CHECKING:
    from docrag.config import DocragConfig
    from docrag.store.base import BaseStore

__all__ = ["SourceCatalog", "base_url"]

logger = logging.getLogger(__name__)


def base_url(url: str) -> str:
    """Return ``scheme://host`` for *url*, or *url* unchanged if it does not parse."""
    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
    except ValueError:
        return url
    if not parsed.scheme or not hostname:
        return url
    return f"{parsed.scheme}://{hostname}"


@dataclass
class _SourceAccumulator:
    title: str
    indexed_at: str
    page_urls: set[str] = field(default_factory=set)
    chunk_count: int = 0


class SourceCatalog:
    """Lists and deletes indexed documentation sources."""

    def __init__(self, store: BaseStore, config: DocragConfig) -> None:
        self.store = store
        self.page_size = config.store.page_size

    def list_sources(self) -> list[SourceInfo]:
        """Summarize stored chunks per base URL, in order of first appearance.

        Raises:
            StoreError: If the store cannot be read.
        """
        sources: dict[str, _SourceAccumulator] = {}
        offset = 0

        while True:
            page = self.store.get_page(self.page_size, offset, include_documents=False)
            if not page:
                break

            for record in page:
                key = base_url(record.url)
                acc = sources.get(key)
                if acc is None:
                    acc = sources[key] = _SourceAccumulator(
                        title=record.title, indexed_at=record.indexed_at
                    )
                acc.page_urls.add(record.url)
                acc.chunk_count += 1
                # ISO-8601 timestamps in one format compare chronologically as strings
                acc.indexed_at = max(acc.indexed_at, record.indexed_at)

            offset += len(page)
            if len(page) < self.page_size:
                break

        return [
            SourceInfo(
                url=key,
                title=acc.title,
                page_count=len(acc.page_urls),
                chunk_count=acc.chunk_count,
                indexed_at=acc.indexed_at,
            )
            for key, acc in sources.items()
        ]

    def delete_by_url(self, url: str) -> int:
        """Delete every chunk whose page URL starts with the base URL of *url*.

        Matches found in a page are deleted right away. Deleting shifts later
        records down into the current window, so the scan offset only
        advances past pages that had nothing to delete.

        Returns:
            Number of chunks deleted.

        Raises:
            StoreError: If the store cannot be read or modified.
        """
        target = base_url(url)
        total_deleted = 0
        offset = 0

        while True:
            page = self.store.get_page(self.page_size, offset, include_documents=False)
            if not page:
                break

            ids = [record.chunk_id for record in page if record.url.startswith(target)]
            if ids:
                total_deleted += self.store.delete(ids)
            else:
                offset += len(page)

            if len(page) < self.page_size:
                break

        logger.info("Deleted %d chunks under %s", total_deleted, target)
        return total_deleted
