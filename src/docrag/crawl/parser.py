"""HTML page parser: title, readable text and outbound links."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from docrag.types import CrawledPage

__all__ = ["parse_page"]

logger = logging.getLogger(__name__)

# Page chrome removed before text extraction
_STRIP_SELECTORS = "script, style, nav, footer, header, aside, .sidebar, .navigation"

# Content containers in priority order
_CONTENT_SELECTORS = ("main", "article", '[role="main"]', "body")

_BLOCK_TAGS = (
    "p", "div", "section", "article", "main", "li", "ul", "ol", "dl", "dt", "dd",
    "table", "tr", "pre", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6", "br", "hr",
)  # fmt: skip

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")


def _clean_text(text: str) -> str:
    """Collapse whitespace inside paragraphs, keep blank lines between them."""
    paragraphs = (" ".join(p.split()) for p in _PARAGRAPH_BREAK_RE.split(text))
    return "\n\n".join(p for p in paragraphs if p)


def _element_text(element: Tag) -> str:
    for block in element.find_all(_BLOCK_TAGS):
        block.insert_before("\n\n")
        block.insert_after("\n\n")
    return _clean_text(element.get_text())


def _extract_links(soup: BeautifulSoup, base_url: str) -> tuple[str, ...]:
    links: dict[str, None] = {}
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href:
            continue
        try:
            absolute = urljoin(base_url, href)
            scheme = urlsplit(absolute).scheme
        except ValueError:
            continue
        if scheme in ("http", "https"):
            links.setdefault(absolute, None)
    return tuple(links)


def parse_page(url: str, html: str) -> CrawledPage:
    """Parse raw HTML into a CrawledPage.

    Title falls back from ``<title>`` to the first ``<h1>`` to the URL.
    Content is the text of the first non-empty of ``<main>``, ``<article>``,
    ``[role=main]`` and ``<body>``. Links are absolute http(s) URLs,
    de-duplicated in order of first appearance.
    """
    soup = BeautifulSoup(html, "html.parser")

    for element in soup.select(_STRIP_SELECTORS):
        element.decompose()

    links = _extract_links(soup, url)

    title = ""
    if soup.title is not None:
        title = " ".join(soup.title.get_text().split())
    if not title:
        h1 = soup.find("h1")
        if isinstance(h1, Tag):
            title = " ".join(h1.get_text().split())
    title = title or url

    content = ""
    for selector in _CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        content = _element_text(element)
        if content:
            break

    logger.debug("Parsed %s: title=%r, %d chars, %d links", url, title, len(content), len(links))
    return CrawledPage(url=url, title=title, content=content, links=links)
