"""Crawling: SSRF guard, bounded fetcher, HTML parser and BFS crawler."""

from docrag.crawl.crawler import Crawler
from docrag.crawl.fetcher import FetchedPage, Fetcher
from docrag.crawl.guard import is_blocked_url
from docrag.crawl.parser import parse_page

__all__ = ["Crawler", "FetchedPage", "Fetcher", "is_blocked_url", "parse_page"]
