"""Embedding engine: abstract provider interface and the Ollama provider."""

from docrag.embed.base import BaseEmbedder
from docrag.embed.ollama import OllamaEmbedder

__all__ = ["BaseEmbedder", "OllamaEmbedder"]
