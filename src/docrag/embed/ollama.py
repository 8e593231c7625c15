"""Ollama embedding provider using the /api/embed endpoint.

Default provider for docrag. Expects a running Ollama with nomic-embed-text.
"""

from __future__ import annotations

import json
import logging
import time
from http.client import HTTPException
from typing import TYPE_CHECKING, Any
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from docrag.embed.base import BaseEmbedder
from docrag.exceptions import EmbeddingError

if TYPE_CHECKING:
    from collections.abc import Callable

    from docrag.config import DocragConfig

__all__ = ["OllamaEmbedder"]

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaEmbedder(BaseEmbedder):
    """Embedding provider using an Ollama instance.

    Texts are sent in batches of ``batch_size`` (one ``/api/embed`` request
    per batch). Batches go out one after another with ``batch_delay``
    seconds between them to avoid overwhelming the server.

    Config fields used::

        [embedding]
        model = "nomic-embed-text"
        base_url = ""           # empty = http://localhost:11434
        batch_size = 10
        batch_delay = 0.1
    """

    def __init__(
        self,
        config: DocragConfig,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self._model = config.embedding.model
        self._base_url = (config.embedding.base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._batch_size = config.embedding.batch_size
        self._batch_delay = config.embedding.batch_delay
        self._timeout = config.embedding.timeout
        self._pull_timeout = config.embedding.pull_timeout
        self._sleep = sleep
        self._dimension: int | None = None

        if self._batch_size < 1:
            raise EmbeddingError(f"batch_size must be >= 1, got {self._batch_size}")

    @property
    def model(self) -> str:
        return self._model

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for texts via Ollama, in input order.

        Raises:
            EmbeddingError: If Ollama is not reachable or returns an error.
        """
        if not texts:
            return []

        vectors: list[list[float]] = []
        for batch_start in range(0, len(texts), self._batch_size):
            if batch_start > 0 and self._batch_delay > 0:
                self._sleep(self._batch_delay)
            batch = texts[batch_start : batch_start + self._batch_size]
            vectors.extend(self._call_embed(batch))

        logger.info("Embedded %d texts via Ollama (%s)", len(vectors), self._model)
        return vectors

    def embed_query(self, text: str) -> list[float]:
        """Generate an embedding for a search query.

        Raises:
            EmbeddingError: If embedding generation fails.
        """
        return self._call_embed([text])[0]

    @property
    def dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Warning:
            First access makes a network call to probe the model unless an
            embedding has already been generated.
        """
        if self._dimension is None:
            vec = self.embed_query("dimension probe")
            self._dimension = len(vec)
        return self._dimension

    def ensure_model_available(self) -> bool:
        """Check that the model is present, pulling it (blocking) if absent.

        Returns:
            True when the model is ready, False if Ollama is unreachable or
            the pull fails.
        """
        try:
            tags = self._request_json("GET", "/api/tags", None, self._timeout)
        except EmbeddingError as e:
            logger.error("Failed to check Ollama models: %s", e)
            return False

        names = [str(m.get("name", "")) for m in tags.get("models") or [] if isinstance(m, dict)]
        if any(n == self._model or n.startswith(f"{self._model}:") for n in names):
            return True

        logger.info("Pulling %s model...", self._model)
        try:
            result = self._request_json(
                "POST",
                "/api/pull",
                {"name": self._model, "stream": False},
                self._pull_timeout,
            )
        except EmbeddingError as e:
            logger.error("Failed to pull embedding model %s: %s", self._model, e)
            return False

        if result.get("error"):
            logger.error("Failed to pull embedding model %s: %s", self._model, result["error"])
            return False

        logger.info("Pulled %s model", self._model)
        return True

    def _call_embed(self, texts: list[str]) -> list[list[float]]:
        """Call the Ollama /api/embed endpoint.

        Raises:
            EmbeddingError: On connection or API errors.
        """
        data = self._request_json(
            "POST", "/api/embed", {"model": self._model, "input": texts}, self._timeout
        )

        embeddings: list[list[float]] = data.get("embeddings") or []
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} inputs"
            )

        # Track dimension from first result
        if embeddings and self._dimension is None:
            self._dimension = len(embeddings[0])

        return embeddings

    def _request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None,
        timeout: float,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = Request(url, data=body, method=method, headers={"Content-Type": "application/json"})

        try:
            with urlopen(req, timeout=timeout) as resp:
                raw = resp.read()
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise EmbeddingError(f"Ollama returned invalid JSON from {url}") from e
        except HTTPError as e:
            raise EmbeddingError(f"Ollama API error (HTTP {e.code}): {e.reason}") from e
        except (OSError, HTTPException) as e:
            raise EmbeddingError(
                f"Ollama not reachable at {self._base_url}. Is Ollama running? Error: {e}"
            ) from e

        if not isinstance(data, dict):
            raise EmbeddingError(f"Unexpected response from {url}")
        return data
