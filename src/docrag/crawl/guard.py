"""SSRF guard: classifies URLs that must never be fetched.

Applied to the crawl start URL, to every discovered link and to every
redirect target.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

__all__ = ["BLOCKED_HOSTNAMES", "is_blocked_url", "is_http_url"]

logger = logging.getLogger(__name__)

BLOCKED_HOSTNAMES: frozenset[str] = frozenset({
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "[::1]",
    "::1",
    "metadata.google.internal",
    "169.254.169.254",  # AWS/GCP metadata
})

_BLOCKED_HOSTNAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^10\.\d+\.\d+\.\d+$"),
    re.compile(r"^172\.(1[6-9]|2\d|3[0-1])\.\d+\.\d+$"),
    re.compile(r"^192\.168\.\d+\.\d+$"),
    re.compile(r"\.local$"),
    re.compile(r"\.internal$"),
)

_ALLOWED_PORTS = frozenset({80, 443})


def is_blocked_url(url: str) -> bool:
    """Return True if *url* targets an internal/private host or a non-web port.

    Unparseable URLs are blocked.
    """
    try:
        parsed = urlsplit(url)
        hostname = (parsed.hostname or "").lower()
        port = parsed.port
    except ValueError:
        return True

    if not hostname:
        return True

    if hostname in BLOCKED_HOSTNAMES:
        return True

    if any(pattern.search(hostname) for pattern in _BLOCKED_HOSTNAME_PATTERNS):
        return True

    return port is not None and port not in _ALLOWED_PORTS


def is_http_url(url: str) -> bool:
    """Return True if *url* parses as an absolute http(s) URL."""
    try:
        parsed = urlsplit(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
