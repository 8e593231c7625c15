"""Tests for docrag.crawl.crawler module: BFS crawl with injected fetcher."""

from __future__ import annotations

import pytest

from docrag.config import DocragConfig
from docrag.crawl.crawler import Crawler, filter_links
from docrag.crawl.fetcher import FetchedPage
from docrag.exceptions import BlockedUrlError

# --- Helpers ---


def _html(title: str, *links: str) -> str:
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return f"<html><head><title>{title}</title></head><body><p>{title} body</p>{anchors}</body>"


class FakeFetcher:
    """Serves pages from a dict; records every fetched URL."""

    def __init__(
        self,
        site: dict[str, str],
        redirects: dict[str, str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.site = site
        self.redirects = redirects or {}
        self.failing = failing or set()
        self.fetched: list[str] = []

    def fetch(self, url: str) -> FetchedPage | None:
        self.fetched.append(url)
        if url in self.failing:
            raise ConnectionError(f"boom: {url}")
        final = self.redirects.get(url, url)
        html = self.site.get(final)
        return FetchedPage(url=final, html=html) if html is not None else None


_SITE = {
    "https://docs.example.com/": _html("Home", "/a", "/b", "https://other.org/x"),
    "https://docs.example.com/a": _html("A", "/", "/c"),
    "https://docs.example.com/b": _html("B", "/a"),
    "https://docs.example.com/c": _html("C"),
}


def _make_crawler(
    fetcher: FakeFetcher,
    config: DocragConfig | None = None,
    sleeps: list[float] | None = None,
) -> Crawler:
    sink = sleeps if sleeps is not None else []
    crawler_config = config or DocragConfig()
    return Crawler(crawler_config, fetcher=fetcher, sleep=sink.append)  # type: ignore[arg-type]


def _urls(pages: list) -> list[str]:
    return [p.url for p in pages]


# --- filter_links ---


class TestFilterLinks:
    def test_keeps_same_domain_and_subdomains(self):
        links = [
            "https://example.com/a",
            "https://docs.example.com/b",
            "https://example.org/c",
            "https://notexample.com/d",
        ]
        assert filter_links(links, ["example.com"], set()) == [
            "https://example.com/a",
            "https://docs.example.com/b",
        ]

    def test_drops_visited(self):
        visited = {"https://example.com/a"}
        assert filter_links(["https://example.com/a"], ["example.com"], visited) == []

    def test_drops_fragments(self):
        assert filter_links(["https://example.com/a#intro"], ["example.com"], set()) == []

    @pytest.mark.parametrize("ext", ["pdf", "zip", "png", "jpg", "gif", "svg", "css", "js", "PDF"])
    def test_drops_binary_extensions(self, ext: str):
        assert filter_links([f"https://example.com/file.{ext}"], ["example.com"], set()) == []

    def test_keeps_html_extension(self):
        links = ["https://example.com/page.html"]
        assert filter_links(links, ["example.com"], set()) == links


# --- Crawler ---


class TestCrawl:
    def test_bfs_order_and_domain_scope(self):
        fetcher = FakeFetcher(_SITE)
        pages = _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=2)
        assert _urls(pages) == [
            "https://docs.example.com/",
            "https://docs.example.com/a",
            "https://docs.example.com/b",
            "https://docs.example.com/c",
        ]
        assert "https://other.org/x" not in fetcher.fetched

    def test_each_url_fetched_once(self):
        fetcher = FakeFetcher(_SITE)
        _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=3)
        assert len(fetcher.fetched) == len(set(fetcher.fetched))

    def test_depth_one(self):
        fetcher = FakeFetcher(_SITE)
        pages = _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=1)
        assert _urls(pages) == [
            "https://docs.example.com/",
            "https://docs.example.com/a",
            "https://docs.example.com/b",
        ]

    def test_depth_zero_fetches_only_start(self):
        fetcher = FakeFetcher(_SITE)
        pages = _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=0)
        assert _urls(pages) == ["https://docs.example.com/"]
        assert fetcher.fetched == ["https://docs.example.com/"]

    def test_depth_clamped_to_limit(self):
        chain = {f"https://example.com/{i}": _html(str(i), f"/{i + 1}") for i in range(10)}
        config = DocragConfig()
        config.crawler.max_depth_limit = 3
        pages = _make_crawler(FakeFetcher(chain), config).crawl(
            "https://example.com/0", max_depth=50
        )
        assert len(pages) == 4

    def test_max_pages(self):
        fetcher = FakeFetcher(_SITE)
        pages = _make_crawler(fetcher).crawl(
            "https://docs.example.com/", max_depth=2, max_pages=2
        )
        assert len(pages) == 2

    def test_max_pages_from_config(self):
        config = DocragConfig()
        config.crawler.max_pages = 1
        pages = _make_crawler(FakeFetcher(_SITE), config).crawl(
            "https://docs.example.com/", max_depth=2
        )
        assert len(pages) == 1

    def test_allowed_domains_override(self):
        site = dict(_SITE)
        site["https://other.org/x"] = _html("X")
        pages = _make_crawler(FakeFetcher(site)).crawl(
            "https://docs.example.com/",
            max_depth=1,
            allowed_domains=["docs.example.com", "other.org"],
        )
        assert "https://other.org/x" in _urls(pages)

    def test_allowed_domains_case_insensitive(self):
        site = dict(_SITE)
        site["https://other.org/x"] = _html("X")
        pages = _make_crawler(FakeFetcher(site)).crawl(
            "https://docs.example.com/",
            max_depth=1,
            allowed_domains=["Docs.Example.COM", "OTHER.org"],
        )
        assert "https://docs.example.com/a" in _urls(pages)
        assert "https://other.org/x" in _urls(pages)

    def test_blocked_start_url_raises(self):
        fetcher = FakeFetcher({})
        with pytest.raises(BlockedUrlError, match="internal or private network"):
            _make_crawler(fetcher).crawl("http://169.254.169.254/", max_depth=1)
        assert fetcher.fetched == []

    def test_blocked_discovered_link_skipped(self):
        site = {"https://example.com/": _html("Home", "https://evil.example.com:8080/")}
        fetcher = FakeFetcher(site)
        pages = _make_crawler(fetcher).crawl("https://example.com/", max_depth=1)
        assert _urls(pages) == ["https://example.com/"]
        assert fetcher.fetched == ["https://example.com/"]

    def test_failed_fetch_skipped(self):
        fetcher = FakeFetcher(_SITE, failing={"https://docs.example.com/a"})
        pages = _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=1)
        assert _urls(pages) == ["https://docs.example.com/", "https://docs.example.com/b"]

    def test_unfetchable_start_returns_empty(self):
        assert _make_crawler(FakeFetcher({})).crawl("https://example.com/", max_depth=2) == []

    def test_redirect_target_counts_as_visited(self):
        site = {
            "https://example.com/": _html("Home", "/old", "/new"),
            "https://example.com/new": _html("New"),
        }
        redirects = {"https://example.com/old": "https://example.com/new"}
        fetcher = FakeFetcher(site, redirects=redirects)
        pages = _make_crawler(fetcher).crawl("https://example.com/", max_depth=1)
        assert _urls(pages) == ["https://example.com/", "https://example.com/new"]

    def test_redirect_to_crawled_page_not_repeated(self):
        site = {
            "https://docs.example.com/": _html("Home", "/b", "/c"),
            "https://docs.example.com/b": _html("B"),
        }
        redirects = {"https://docs.example.com/c": "https://docs.example.com/b"}
        fetcher = FakeFetcher(site, redirects=redirects)
        pages = _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=1)
        assert _urls(pages) == ["https://docs.example.com/", "https://docs.example.com/b"]
        assert "https://docs.example.com/c" in fetcher.fetched

    def test_redirect_off_domain_dropped(self):
        site = {
            "https://docs.example.com/": _html("Home", "/moved"),
            "https://elsewhere.org/landing": _html("Landing"),
        }
        redirects = {"https://docs.example.com/moved": "https://elsewhere.org/landing"}
        fetcher = FakeFetcher(site, redirects=redirects)
        pages = _make_crawler(fetcher).crawl("https://docs.example.com/", max_depth=1)
        assert _urls(pages) == ["https://docs.example.com/"]

    def test_page_links_resolve_against_final_url(self):
        site = {
            "https://example.com/docs/": _html("Docs", "guide"),
            "https://example.com/docs/guide": _html("Guide"),
        }
        redirects = {"https://example.com/": "https://example.com/docs/"}
        fetcher = FakeFetcher(site, redirects=redirects)
        pages = _make_crawler(fetcher).crawl("https://example.com/", max_depth=1)
        assert _urls(pages) == ["https://example.com/docs/", "https://example.com/docs/guide"]


class TestCrawlPacing:
    def test_waits_between_requests(self):
        config = DocragConfig()
        config.crawler.request_delay = 0.5
        sleeps: list[float] = []
        _make_crawler(FakeFetcher(_SITE), config, sleeps).crawl(
            "https://docs.example.com/", max_depth=1
        )
        assert len(sleeps) == 2
        assert all(0 < s <= 0.5 for s in sleeps)

    def test_no_wait_for_single_page(self):
        sleeps: list[float] = []
        config = DocragConfig()
        _make_crawler(FakeFetcher(_SITE), config, sleeps).crawl(
            "https://docs.example.com/", max_depth=0
        )
        assert sleeps == []

    def test_cancel_stops_crawl(self):
        config = DocragConfig()
        config.crawler.request_delay = 0.5
        fetcher = FakeFetcher(_SITE)
        crawler = Crawler(config, fetcher=fetcher)  # type: ignore[arg-type]
        crawler._sleep = lambda _s: crawler.cancel()  # type: ignore[method-assign]
        pages = crawler.crawl("https://docs.example.com/", max_depth=2)
        assert _urls(pages) == ["https://docs.example.com/"]
