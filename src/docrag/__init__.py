"""docrag: crawl documentation sites into a vector store and search them."""

__version__ = "1.0.0"
