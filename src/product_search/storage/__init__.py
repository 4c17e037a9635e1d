"""Storage backends for the product catalog and vector index."""

from .base import CatalogStore, Candidate, ProductRecord, VectorIndex
from .duckdb import DuckDBStorage

__all__ = [
    "CatalogStore",
    "Candidate",
    "ProductRecord",
    "VectorIndex",
    "DuckDBStorage",
]
