"""Keyword extraction for lexical matching."""

from __future__ import annotations

import re
from collections import Counter

__all__ = ["STOP_WORDS", "extract_keywords", "tokenize"]

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "this", "that", "these",
    "those", "it", "its", "as", "if", "then", "else",
})  # fmt: skip

_WORD_RE = re.compile(r"\b[a-z]{3,}\b")

MAX_KEYWORDS = 20


def tokenize(text: str) -> list[str]:
    """Lowercase alphabetic words of three or more letters, in order."""
    return _WORD_RE.findall(text.lower())


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Return the *limit* most frequent non-stopword tokens.

    Ties keep the order in which words first appear.
    """
    counts = Counter(word for word in tokenize(text) if word not in STOP_WORDS)
    return [word for word, _ in counts.most_common(limit)]
