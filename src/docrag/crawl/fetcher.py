"""Bounded HTTP fetcher for HTML pages.

Redirects are never followed automatically. A response in the 3xx range moves
the fetch through an explicit single-hop state machine::

    INITIAL --3xx + Location, target allowed--> REDIRECTED --any--> terminal

so the SSRF check and the hop limit live in one place. Both requests and the
streamed body read share one deadline.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urljoin

import httpx

from docrag.crawl.guard import is_blocked_url
from docrag.exceptions import FetchTimeoutError

if TYPE_CHECKING:
    from collections.abc import Callable

    from docrag.config import DocragConfig

__all__ = ["FetchedPage", "Fetcher"]

logger = logging.getLogger(__name__)

_ACCEPT = "text/html,application/xhtml+xml"
_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class _FetchState(enum.Enum):
    INITIAL = "initial"
    REDIRECTED = "redirected"


@dataclass(frozen=True)
class FetchedPage:
    """Raw HTML and the URL it was actually served from."""

    url: str
    html: str


class Fetcher:
    """Fetches one HTML page at a time with a timeout and a size cap.

    Usage::

        with Fetcher(config) as fetcher:
            page = fetcher.fetch("https://docs.example.com/")

    ``fetch`` returns ``None`` for any rejected response (non-2xx, non-HTML,
    oversized, blocked or chained redirect). Transport errors and
    ``FetchTimeoutError`` propagate to the caller.
    """

    def __init__(
        self,
        config: DocragConfig,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = config.crawler.request_timeout
        self._max_bytes = config.crawler.max_response_bytes
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=False)
        self._headers = {"User-Agent": config.crawler.user_agent, "Accept": _ACCEPT}

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this fetcher created it."""
        if self._owns_client:
            self._client.close()

    def fetch(self, url: str) -> FetchedPage | None:
        """Fetch *url*, following at most one redirect.

        Raises:
            FetchTimeoutError: If the deadline passes before the body is read.
            httpx.HTTPError: On transport failures.
        """
        deadline = self._clock() + self._timeout
        state = _FetchState.INITIAL
        target = url

        while True:
            with self._client.stream(
                "GET",
                target,
                headers=self._headers,
                follow_redirects=False,
                timeout=self._remaining(deadline, target),
            ) as response:
                if not 300 <= response.status_code < 400:
                    html = self._read_html(response, target, deadline)
                    return FetchedPage(url=target, html=html) if html is not None else None

                location = response.headers.get("location")
                if state is not _FetchState.INITIAL or not location:
                    logger.debug(
                        "Not following redirect from %s (status %d)", target, response.status_code
                    )
                    return None

                redirect_url = urljoin(target, location)
                if is_blocked_url(redirect_url):
                    logger.warning(
                        "Blocked redirect to internal URL: %s -> %s", target, redirect_url
                    )
                    return None

                logger.debug("Following redirect %s -> %s", target, redirect_url)
                state = _FetchState.REDIRECTED
                target = redirect_url

    def _remaining(self, deadline: float, url: str) -> float:
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise FetchTimeoutError(f"Timed out fetching {url}")
        return remaining

    def _read_html(self, response: httpx.Response, url: str, deadline: float) -> str | None:
        """Validate the final response and read its body within the size cap."""
        if not response.is_success:
            logger.debug("Skipping %s: HTTP %d", url, response.status_code)
            return None

        content_type = response.headers.get("content-type", "").lower()
        if not any(ct in content_type for ct in _HTML_CONTENT_TYPES):
            logger.debug("Skipping %s: content type %r", url, content_type)
            return None

        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self._max_bytes:
            logger.warning("Response too large, skipping %s (%s bytes)", url, content_length)
            return None

        parts: list[bytes] = []
        total = 0
        for part in response.iter_bytes():
            total += len(part)
            if total > self._max_bytes:
                logger.warning(
                    "Response exceeded size limit during streaming: %s (%d bytes)", url, total
                )
                return None
            if self._clock() > deadline:
                raise FetchTimeoutError(f"Timed out reading {url}")
            parts.append(part)

        body = b"".join(parts)
        try:
            return body.decode(response.charset_encoding or "utf-8", errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")
