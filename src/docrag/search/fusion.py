"""Rank fusion helpers: query expansion, result identity and RRF.

Reciprocal Rank Fusion scores every result by summing ``1 / (k + rank + 1)``
over each ranked list it appears in (``rank`` is 0-based). A larger ``k``
flattens the difference between top and lower ranks.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docrag.types import SearchResult

__all__ = ["DEFAULT_RRF_K", "dedupe_best", "expand_query", "reciprocal_rank_fusion", "result_key"]

DEFAULT_RRF_K = 60

_KEY_TEXT_CHARS = 100


def expand_query(query: str) -> list[str]:
    """Return the literal query plus fixed phrasing variants."""
    return [query, f"what is {query}", f"how to {query}", f"{query} example"]


def result_key(result: SearchResult) -> tuple[str, str]:
    """Identity of a result across ranked lists: URL and leading text."""
    return (result.url, result.text[:_KEY_TEXT_CHARS])


def dedupe_best(results: Sequence[SearchResult]) -> list[SearchResult]:
    """Keep the highest-scoring result per key, sorted by score descending."""
    best: dict[tuple[str, str], SearchResult] = {}
    for result in results:
        key = result_key(result)
        existing = best.get(key)
        if existing is None or existing.score < result.score:
            best[key] = result
    return sorted(best.values(), key=lambda r: r.score, reverse=True)


def reciprocal_rank_fusion(
    ranked_lists: Sequence[Sequence[SearchResult]],
    top_k: int,
    k: int = DEFAULT_RRF_K,
) -> list[SearchResult]:
    """Merge ranked lists with Reciprocal Rank Fusion.

    The first occurrence of a key supplies the returned text/url/title; the
    score is replaced by the fused score. Ties keep first-encountered order.
    """
    fused: dict[tuple[str, str], tuple[SearchResult, float]] = {}
    for results in ranked_lists:
        for rank, result in enumerate(results):
            key = result_key(result)
            contribution = 1.0 / (k + rank + 1)
            if key in fused:
                first, score = fused[key]
                fused[key] = (first, score + contribution)
            else:
                fused[key] = (result, contribution)

    ordered = sorted(fused.values(), key=lambda item: item[1], reverse=True)
    return [replace(result, score=score) for result, score in ordered[:top_k]]
