"""Breadth-first, rate-limited documentation crawler.

Crawling is strictly sequential: one request in flight at a time, and a
fixed delay between the end of one successful fetch and the start of the
next. The loop keeps a "next allowed time" cursor instead of sleeping
inline, so cancellation only has to interrupt the wait.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections import deque
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from docrag.crawl.fetcher import Fetcher
from docrag.crawl.guard import is_blocked_url
from docrag.crawl.parser import parse_page
from docrag.exceptions import BlockedUrlError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from docrag.config import DocragConfig
    from docrag.types import CrawledPage

__all__ = ["Crawler", "filter_links"]

logger = logging.getLogger(__name__)

_BINARY_EXT_RE = re.compile(r"\.(pdf|zip|png|jpg|gif|svg|css|js)$", re.IGNORECASE)


def _hostname(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _domain_allowed(hostname: str, domains: Sequence[str]) -> bool:
    return any(hostname == d or hostname.endswith(f".{d}") for d in domains)


def filter_links(
    links: Iterable[str],
    allowed_domains: Sequence[str],
    visited: set[str],
) -> list[str]:
    """Keep unvisited page links on an allowed domain.

    Links with a fragment or a binary file extension are dropped.
    """
    result: list[str] = []
    for link in links:
        if link in visited:
            continue
        try:
            parsed = urlsplit(link)
            hostname = (parsed.hostname or "").lower()
        except ValueError:
            continue
        if parsed.fragment or _BINARY_EXT_RE.search(link):
            continue
        if _domain_allowed(hostname, allowed_domains):
            result.append(link)
    return result


class Crawler:
    """Crawls a documentation site breadth-first from a start URL.

    Usage::

        crawler = Crawler(config)
        pages = crawler.crawl("https://docs.example.com/", max_depth=2)

    ``fetcher`` and ``sleep`` can be injected for tests. By default the
    inter-request wait blocks on the crawler's stop event, so ``cancel()``
    from another thread wakes it immediately.
    """

    def __init__(
        self,
        config: DocragConfig,
        fetcher: Fetcher | None = None,
        sleep: Callable[[float], object] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._stop = threading.Event()
        self._sleep = sleep or self._stop.wait
        self._clock = clock

    def cancel(self) -> None:
        """Stop the crawl after the request currently in flight."""
        self._stop.set()

    def crawl(
        self,
        start_url: str,
        max_depth: int,
        max_pages: int | None = None,
        allowed_domains: Sequence[str] | None = None,
    ) -> list[CrawledPage]:
        """Crawl from *start_url* and return the pages fetched, in BFS order.

        Args:
            start_url: First page to fetch (depth 0).
            max_depth: Link depth to follow; clamped to ``max_depth_limit``.
            max_pages: Page cap (defaults to ``crawler.max_pages``).
            allowed_domains: Hostnames whose pages (and subdomains) may be
                crawled. Defaults to the start URL's hostname.

        Raises:
            BlockedUrlError: If the start URL targets an internal network.
        """
        if is_blocked_url(start_url):
            raise BlockedUrlError("URL is not allowed: internal or private network detected")

        crawler_cfg = self._config.crawler
        depth_limit = min(max_depth, crawler_cfg.max_depth_limit)
        page_limit = crawler_cfg.max_pages if max_pages is None else max_pages
        domains = [d.lower() for d in allowed_domains or [_hostname(start_url)]]

        self._stop.clear()
        fetcher = self._fetcher or Fetcher(self._config)
        try:
            return self._run(fetcher, start_url, depth_limit, page_limit, domains)
        finally:
            if self._fetcher is None:
                fetcher.close()

    def _run(
        self,
        fetcher: Fetcher,
        start_url: str,
        depth_limit: int,
        page_limit: int,
        domains: list[str],
    ) -> list[CrawledPage]:
        delay = self._config.crawler.request_delay
        visited: set[str] = set()
        pages: list[CrawledPage] = []
        queue: deque[tuple[str, int]] = deque([(start_url, 0)])
        next_allowed = 0.0

        while queue and len(pages) < page_limit and not self._stop.is_set():
            url, depth = queue.popleft()

            if url in visited or depth > depth_limit:
                continue
            if is_blocked_url(url):
                logger.debug("Skipping blocked URL %s", url)
                continue

            visited.add(url)

            wait = next_allowed - self._clock()
            if wait > 0:
                self._sleep(wait)
                if self._stop.is_set():
                    break

            try:
                fetched = fetcher.fetch(url)
                page = parse_page(fetched.url, fetched.html) if fetched is not None else None
            except Exception as e:
                logger.error("Failed to crawl %s: %s", url, e)
                continue

            if page is not None and page.url != url:
                if page.url in visited:
                    logger.debug("Redirect target %s already crawled", page.url)
                    page = None
                elif not _domain_allowed(_hostname(page.url), domains):
                    logger.debug("Redirect from %s leaves allowed domains: %s", url, page.url)
                    page = None

            if page is not None:
                visited.add(page.url)
                pages.append(page)
                logger.info("Crawled %s (depth=%d, %d/%d)", page.url, depth, len(pages), page_limit)

                if depth < depth_limit:
                    for link in filter_links(page.links, domains, visited):
                        queue.append((link, depth + 1))

            if queue:
                next_allowed = self._clock() + delay

        logger.info("Crawl of %s finished: %d pages", start_url, len(pages))
        return pages
