"""
ProductSearch - semantic search over a product catalog.

This package turns free-text queries into embeddings with Google GenAI,
retrieves nearest products from a DuckDB-backed vector index, applies
category and price filters, and returns a ranked result list.

Example usage:
    >>> from product_search import DuckDBStorage, EmbeddingProvider, ProductQuery, SearchPipeline
    >>> storage = DuckDBStorage("catalog.duckdb")
    >>> pipeline = SearchPipeline.from_env(embedding_provider=EmbeddingProvider(), storage=storage)
    >>> results = pipeline.search(ProductQuery(text="wireless mouse", max_price=50))
"""

from .embedding_cache import EmbeddingCache
from .embeddings import EmbeddingProvider
from .errors import (
    EmbeddingProviderError,
    EmbeddingUnavailable,
    IndexUnavailable,
    InvalidInput,
    InvalidSortField,
    ProductSearchError,
    ProviderError,
    ProviderUnavailable,
)
from .indexing import IndexingResult, ProductIndexer
from .search import ProductFilter, ProductQuery, SearchPipeline
from .storage import Candidate, DuckDBStorage, ProductRecord

__all__ = [
    # Cache and provider
    "EmbeddingCache",
    "EmbeddingProvider",
    # Errors
    "ProductSearchError",
    "InvalidInput",
    "InvalidSortField",
    "EmbeddingProviderError",
    "ProviderUnavailable",
    "ProviderError",
    "EmbeddingUnavailable",
    "IndexUnavailable",
    # Indexing
    "IndexingResult",
    "ProductIndexer",
    # Search
    "ProductFilter",
    "ProductQuery",
    "SearchPipeline",
    # Storage
    "Candidate",
    "DuckDBStorage",
    "ProductRecord",
]
