"""Vector store: ChromaDB storage behind a typed interface."""

from docrag.store.base import BaseStore
from docrag.store.chroma import ChromaStore

__all__ = ["BaseStore", "ChromaStore"]
