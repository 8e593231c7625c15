"""Configuration system for docrag.

Manages configuration via a TOML file (``docrag.toml`` by default) with typed
dataclasses and sensible defaults for all values. Service endpoints can be
overridden from the environment (``OLLAMA_HOST``, ``CHROMA_HOST``).
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import urlsplit

import tomli_w

if sys.version_info >= (3, 12):
    import tomllib
else:
    import tomli as tomllib

from docrag.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

_T = TypeVar("_T")

__all__ = [
    "ChunkConfig",
    "CrawlerConfig",
    "DocragConfig",
    "EmbeddingConfig",
    "SearchConfig",
    "StoreConfig",
    "apply_env_overrides",
    "default_config",
    "load_config",
    "save_config",
]

logger = logging.getLogger(__name__)

_KNOWN_SERVICE_HOSTS = frozenset({"localhost", "127.0.0.1", "ollama", "chromadb", "chroma"})


@dataclass
class CrawlerConfig:
    """[crawler] section."""

    max_depth_limit: int = 5
    default_max_depth: int = 2
    max_pages: int = 100
    request_timeout: float = 10.0
    request_delay: float = 0.5
    max_response_bytes: int = 10 * 1024 * 1024
    user_agent: str = "docrag/1.0 (Documentation Crawler)"


@dataclass
class ChunkConfig:
    """[chunk] section. Sizes are counted in words."""

    chunk_size: int = 500
    chunk_overlap: int = 100
    min_chunk_size: int = 50
    strategy: str = "semantic"


@dataclass
class EmbeddingConfig:
    """[embedding] section."""

    model: str = "nomic-embed-text"
    base_url: str = ""
    batch_size: int = 10
    batch_delay: float = 0.1
    timeout: float = 120.0
    pull_timeout: float = 600.0


@dataclass
class StoreConfig:
    """[store] section."""

    host: str = "http://localhost:8000"
    persist_path: str = ""
    collection_name: str = "docrag_documents"
    page_size: int = 1000


@dataclass
class SearchConfig:
    """[search] section."""

    default_top_k: int = 5
    max_top_k: int = 100
    max_query_length: int = 10000
    rrf_k: int = 60


@dataclass
class DocragConfig:
    """Root configuration combining all sections."""

    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    chunk: ChunkConfig = field(default_factory=ChunkConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    search: SearchConfig = field(default_factory=SearchConfig)


_SECTIONS: dict[str, type] = {
    "crawler": CrawlerConfig,
    "chunk": ChunkConfig,
    "embedding": EmbeddingConfig,
    "store": StoreConfig,
    "search": SearchConfig,
}


def default_config() -> DocragConfig:
    """Return a config with all default values."""
    return DocragConfig()


def _config_to_dict(config: DocragConfig) -> dict[str, object]:
    """Convert DocragConfig to a nested dict suitable for TOML serialization."""
    return {name: dict(vars(getattr(config, name))) for name in _SECTIONS}


def save_config(config: DocragConfig, path: Path) -> None:
    """Save configuration to a TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _config_to_dict(config)
    try:
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        logger.info("Saved config to %s", path)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise ConfigError(f"Failed to save config to {path}: {e}") from e


def _load_section(cls: type[_T], data: dict[str, object]) -> _T:
    """Load a dataclass section from a dict, ignoring unknown keys."""
    known_fields = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered = {k: v for k, v in data.items() if k in known_fields}
    return cls(**filtered)


def load_config(path: Path) -> DocragConfig:
    """Load configuration from a TOML file.

    Missing sections or keys get default values.
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_bytes()
        data = tomllib.loads(raw.decode("utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    config = DocragConfig()
    for name, cls in _SECTIONS.items():
        section = data.get(name)
        if isinstance(section, dict):
            try:
                setattr(config, name, _load_section(cls, section))
            except TypeError as e:
                raise ConfigError(f"Invalid [{name}] section in {path}: {e}") from e

    logger.info("Loaded config from %s", path)
    return config


def _validate_service_url(url: str, name: str) -> str:
    """Check a service endpoint taken from the environment.

    Only http/https is accepted. Hosts other than the usual local and
    container names are allowed but logged.
    """
    try:
        parsed = urlsplit(url)
        hostname = (parsed.hostname or "").lower()
    except ValueError as e:
        raise ConfigError(f"Invalid {name} URL: {e}") from e

    if parsed.scheme not in ("http", "https"):
        raise ConfigError(f"Invalid {name} URL: only http/https allowed")
    if not hostname:
        raise ConfigError(f"Invalid {name} URL: missing host")

    if hostname not in _KNOWN_SERVICE_HOSTS:
        logger.warning("Non-standard host for %s: %s", name, hostname)

    return url


def apply_env_overrides(
    config: DocragConfig,
    environ: Mapping[str, str] | None = None,
) -> DocragConfig:
    """Apply ``OLLAMA_HOST`` and ``CHROMA_HOST`` overrides in place.

    Raises:
        ConfigError: If an override is not a valid http(s) URL.
    """
    env = os.environ if environ is None else environ

    ollama_host = env.get("OLLAMA_HOST", "").strip()
    if ollama_host:
        config.embedding.base_url = _validate_service_url(ollama_host, "OLLAMA_HOST")

    chroma_host = env.get("CHROMA_HOST", "").strip()
    if chroma_host:
        config.store.host = _validate_service_url(chroma_host, "CHROMA_HOST")

    return config
