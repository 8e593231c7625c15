"""Retrieval: semantic, lexical and fused ranking over the vector store."""

from docrag.search.engine import SearchEngine
from docrag.search.fusion import expand_query, reciprocal_rank_fusion, result_key

__all__ = ["SearchEngine", "expand_query", "reciprocal_rank_fusion", "result_key"]
