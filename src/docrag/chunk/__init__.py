"""Chunking engine: paragraph-aware and sliding-window word splitting."""

from docrag.chunk.base import BaseChunker
from docrag.chunk.keywords import extract_keywords
from docrag.chunk.page import PageChunker, generate_context, make_chunk_id
from docrag.chunk.text import split_semantic, split_sliding_window

__all__ = [
    "BaseChunker",
    "PageChunker",
    "extract_keywords",
    "generate_context",
    "make_chunk_id",
    "split_semantic",
    "split_sliding_window",
]
