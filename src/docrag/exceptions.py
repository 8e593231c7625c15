"""Custom exception hierarchy for docrag."""

__all__ = [
    "BlockedUrlError",
    "ChunkError",
    "ConfigError",
    "CrawlError",
    "DocragError",
    "EmbeddingError",
    "FetchError",
    "FetchTimeoutError",
    "PipelineError",
    "StoreError",
]


class DocragError(Exception):
    """Base exception for all docrag errors."""


class ConfigError(DocragError):
    """Raised when configuration loading or validation fails."""


class CrawlError(DocragError):
    """Raised when a crawl cannot proceed."""


class BlockedUrlError(CrawlError):
    """Raised when the crawl start URL points at an internal or private network."""


class FetchError(CrawlError):
    """Raised when fetching a single page fails at the transport level."""


class FetchTimeoutError(FetchError):
    """Raised when a fetch exceeds its deadline."""


class ChunkError(DocragError):
    """Raised when chunking operations fail."""


class EmbeddingError(DocragError):
    """Raised when embedding generation fails."""


class StoreError(DocragError):
    """Raised when vector store operations fail."""


class PipelineError(DocragError):
    """Raised when pipeline orchestration fails."""
