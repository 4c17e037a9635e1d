"""
Semantic product search pipeline.

Turns a free-text query into an embedding (cache first, provider on miss),
retrieves nearest products from the vector index, hydrates them from the
catalog, applies category and price filters in relevance order, and
optionally sorts by an explicit field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ..config import resolve_cache_size, resolve_candidate_limit
from ..embedding_cache import EmbeddingCache
from ..errors import EmbeddingProviderError, EmbeddingUnavailable, InvalidInput
from ..storage import DuckDBStorage
from ..storage.base import CatalogStore, ProductRecord, VectorIndex
from .filters import ProductFilter, filter_candidates
from .ranker import normalize_sort_direction, normalize_sort_field, sort_products

logger = logging.getLogger(__name__)

# Over-fetch factor applied to the requested page size.
_PAGE_OVERFETCH = 4


class QueryEmbedder(Protocol):
    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for *text*."""


@dataclass(frozen=True)
class ProductQuery:
    """A semantic search request."""

    text: str
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort_by: str | None = None
    sort_direction: str | None = "asc"
    limit: int | None = None

    @property
    def product_filter(self) -> ProductFilter:
        return ProductFilter(
            category=self.category,
            min_price=self.min_price,
            max_price=self.max_price,
        )


def normalize_query_text(text: str | None) -> str:
    """Trim surrounding whitespace; case is kept as given."""
    if text is None:
        return ""
    return text.strip()


def validate_query(query: ProductQuery) -> None:
    """Reject malformed requests before any cache, network, or index access."""
    if not normalize_query_text(query.text):
        raise InvalidInput("Search query must not be empty.")
    normalize_sort_field(query.sort_by)
    normalize_sort_direction(query.sort_direction)
    if query.limit is not None and query.limit < 1:
        raise InvalidInput(f"Result limit must be positive, got {query.limit}.")


class SearchPipeline:
    """Embed, retrieve, hydrate, filter, and order products for a query."""

    def __init__(
        self,
        embedding_provider: QueryEmbedder,
        vector_index: VectorIndex,
        catalog: CatalogStore,
        *,
        cache: EmbeddingCache | None = None,
        candidate_limit: int | None = None,
    ) -> None:
        self.embedding_provider = embedding_provider
        self.vector_index = vector_index
        self.catalog = catalog
        self.cache = cache if cache is not None else EmbeddingCache()
        self.candidate_limit = resolve_candidate_limit(candidate_limit)

    @classmethod
    def from_env(
        cls,
        *,
        embedding_provider: QueryEmbedder,
        storage: DuckDBStorage,
        cache: EmbeddingCache | None = None,
    ) -> SearchPipeline:
        """Build a pipeline over one storage that is both index and catalog."""
        return cls(
            embedding_provider,
            storage,
            storage,
            cache=cache if cache is not None else EmbeddingCache(resolve_cache_size()),
        )

    def embed_query(self, text: str) -> list[float]:
        """Return the query embedding, calling the provider only on a cache miss."""
        normalized = normalize_query_text(text)
        if not normalized:
            raise InvalidInput("Search query must not be empty.")

        cached = self.cache.get(normalized)
        if cached is not None:
            logger.debug("Embedding cache hit for %r", normalized)
            return cached

        logger.debug("Embedding cache miss for %r", normalized)
        try:
            vector = self.embedding_provider.embed(normalized)
        except EmbeddingProviderError as exc:
            logger.warning("Embedding generation failed for %r: %s", normalized, exc)
            raise EmbeddingUnavailable("Failed to generate query embedding.") from exc

        self.cache.put(normalized, vector)
        return vector

    def search(self, query: ProductQuery) -> list[ProductRecord]:
        """Run a search; an empty list means no matches, never a failure."""
        validate_query(query)

        vector = self.embed_query(query.text)
        k = self._candidate_count(query.limit)
        candidates = self.vector_index.nearest(vector, k)
        products = self.catalog.hydrate({candidate.product_id for candidate in candidates})
        filtered = filter_candidates(candidates, products, query.product_filter)
        ordered = sort_products(
            filtered,
            sort_by=query.sort_by,
            sort_direction=query.sort_direction,
        )
        if query.limit is not None:
            ordered = ordered[: query.limit]

        logger.info(
            "Search %r: %d candidates, %d hydrated, %d after filters, %d returned",
            normalize_query_text(query.text),
            len(candidates),
            len(products),
            len(filtered),
            len(ordered),
        )
        return ordered

    def _candidate_count(self, limit: int | None) -> int:
        if limit is None:
            return self.candidate_limit
        return max(self.candidate_limit, limit * _PAGE_OVERFETCH)
