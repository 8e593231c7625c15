"""Tests for docrag.crawl.fetcher module: bounded HTML fetching over httpx."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import pytest

from docrag.config import DocragConfig
from docrag.crawl.fetcher import FetchedPage, Fetcher
from docrag.exceptions import FetchTimeoutError

_HTML = "<html><head><title>T</title></head><body><p>Hello</p></body></html>"

# --- Helpers ---


def _make_fetcher(
    handler: Callable[[httpx.Request], httpx.Response],
    config: DocragConfig | None = None,
    clock: Callable[[], float] | None = None,
) -> Fetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    kwargs = {"clock": clock} if clock is not None else {}
    return Fetcher(config or DocragConfig(), client=client, **kwargs)


def _html_response(body: str = _HTML, status: int = 200) -> httpx.Response:
    return httpx.Response(
        status, headers={"content-type": "text/html; charset=utf-8"}, content=body.encode()
    )


class _Recorder:
    """Handler that serves a fixed route table and records requested URLs."""

    def __init__(self, routes: dict[str, httpx.Response]) -> None:
        self.routes = routes
        self.requested: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        return self.routes.get(url, httpx.Response(404))


# --- Successful fetches ---


class TestFetchHtml:
    def test_returns_html(self):
        handler = _Recorder({"https://docs.example.com/": _html_response()})
        with _make_fetcher(handler) as fetcher:
            page = fetcher.fetch("https://docs.example.com/")
        assert page == FetchedPage(url="https://docs.example.com/", html=_HTML)

    def test_sends_user_agent_and_accept(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _html_response()

        config = DocragConfig()
        config.crawler.user_agent = "test-agent/1.0"
        _make_fetcher(handler, config).fetch("https://example.com/")
        assert seen[0].headers["user-agent"] == "test-agent/1.0"
        assert "text/html" in seen[0].headers["accept"]

    def test_accepts_xhtml(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"content-type": "application/xhtml+xml"}, content=b"<html/>"
            )

        page = _make_fetcher(handler).fetch("https://example.com/")
        assert page is not None
        assert page.html == "<html/>"


# --- Rejected responses ---


class TestFetchRejects:
    def test_non_success_status(self):
        handler = _Recorder({"https://example.com/": _html_response(status=500)})
        assert _make_fetcher(handler).fetch("https://example.com/") is None

    def test_not_found(self):
        assert _make_fetcher(_Recorder({})).fetch("https://example.com/missing") is None

    def test_non_html_content_type(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "application/json"}, content=b"{}")

        assert _make_fetcher(handler).fetch("https://example.com/data") is None

    def test_declared_length_over_cap(self):
        config = DocragConfig()
        config.crawler.max_response_bytes = 100
        handler = _Recorder({"https://example.com/": _html_response("x" * 200)})
        assert _make_fetcher(handler, config).fetch("https://example.com/") is None

    def test_streamed_body_over_cap(self):
        config = DocragConfig()
        config.crawler.max_response_bytes = 100

        def body() -> Iterator[bytes]:
            for _ in range(10):
                yield b"x" * 30

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "text/html"}, content=body())

        assert _make_fetcher(handler, config).fetch("https://example.com/") is None

    def test_body_at_cap_is_accepted(self):
        config = DocragConfig()
        config.crawler.max_response_bytes = 100
        handler = _Recorder({"https://example.com/": _html_response("x" * 100)})
        page = _make_fetcher(handler, config).fetch("https://example.com/")
        assert page is not None
        assert len(page.html) == 100


# --- Redirects ---


class TestFetchRedirects:
    def test_follows_one_redirect(self):
        handler = _Recorder({
            "https://example.com/old": httpx.Response(
                301, headers={"location": "https://example.com/new"}
            ),
            "https://example.com/new": _html_response(),
        })
        page = _make_fetcher(handler).fetch("https://example.com/old")
        assert page is not None
        assert page.url == "https://example.com/new"
        assert handler.requested == ["https://example.com/old", "https://example.com/new"]

    def test_relative_location_resolved(self):
        handler = _Recorder({
            "https://example.com/docs/a": httpx.Response(302, headers={"location": "b"}),
            "https://example.com/docs/b": _html_response(),
        })
        page = _make_fetcher(handler).fetch("https://example.com/docs/a")
        assert page is not None
        assert page.url == "https://example.com/docs/b"

    def test_blocked_redirect_not_followed(self):
        handler = _Recorder({
            "https://example.com/": httpx.Response(
                302, headers={"location": "http://169.254.169.254/latest/meta-data/"}
            ),
        })
        assert _make_fetcher(handler).fetch("https://example.com/") is None
        assert handler.requested == ["https://example.com/"]

    def test_second_redirect_not_followed(self):
        handler = _Recorder({
            "https://example.com/a": httpx.Response(
                301, headers={"location": "https://example.com/b"}
            ),
            "https://example.com/b": httpx.Response(
                301, headers={"location": "https://example.com/c"}
            ),
            "https://example.com/c": _html_response(),
        })
        assert _make_fetcher(handler).fetch("https://example.com/a") is None
        assert handler.requested == ["https://example.com/a", "https://example.com/b"]

    def test_redirect_without_location(self):
        handler = _Recorder({"https://example.com/": httpx.Response(302)})
        assert _make_fetcher(handler).fetch("https://example.com/") is None


# --- Deadline ---


class TestFetchDeadline:
    def test_deadline_passed_before_request(self):
        ticks = iter([0.0, 100.0])
        handler = _Recorder({"https://example.com/": _html_response()})
        fetcher = _make_fetcher(handler, clock=lambda: next(ticks))
        with pytest.raises(FetchTimeoutError):
            fetcher.fetch("https://example.com/")
        assert handler.requested == []

    def test_deadline_passed_while_reading(self):
        ticks = iter([0.0, 1.0, 100.0, 100.0])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"content-type": "text/html"}, content=iter([b"<p>", b"late</p>"])
            )

        fetcher = _make_fetcher(handler, clock=lambda: next(ticks))
        with pytest.raises(FetchTimeoutError):
            fetcher.fetch("https://example.com/")
