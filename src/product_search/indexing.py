"""
Product embedding indexer.

Embeds catalog products and stores their vectors so they become reachable
through the vector index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .embeddings import EmbeddingProvider
from .storage import DuckDBStorage, ProductRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexingResult:
    """Summary output for an indexing run."""

    products_seen: int
    embeddings_written: int
    total_vectors: int


def product_embedding_text(product: ProductRecord) -> str:
    """Build the text embedded for a product."""
    parts = [product.name]
    if product.brand:
        parts.append(f"Brand: {product.brand}")
    parts.append(f"Category: {product.category}")
    if product.description.strip():
        parts.append(product.description.strip())
    return "\n".join(parts)


class ProductIndexer:
    """Generate and persist embeddings for catalog products."""

    def __init__(
        self,
        storage: DuckDBStorage,
        embedding_provider: EmbeddingProvider,
    ) -> None:
        self.storage = storage
        self.embedding_provider = embedding_provider

    def index_products(self, *, reindex: bool = False) -> IndexingResult:
        """Embed products lacking a vector, or every product when *reindex* is set."""
        if reindex:
            products = self.storage.list_products()
        else:
            products = self.storage.products_without_vectors()

        written = 0
        if products:
            texts = [product_embedding_text(product) for product in products]
            embeddings = self.embedding_provider.embed_texts(texts)
            pairs = [
                (product.id, embedding)
                for product, embedding in zip(products, embeddings)
            ]
            written = self.storage.store_product_vectors(pairs)

        logger.info("Indexed %d of %d products", written, len(products))
        return IndexingResult(
            products_seen=len(products),
            embeddings_written=written,
            total_vectors=self.storage.count_vectors(),
        )

    def index_product(self, product_id: int) -> bool:
        """Embed a single product. Return False when the product does not exist."""
        product = self.storage.get_product(product_id)
        if product is None:
            return False
        [embedding] = self.embedding_provider.embed_texts([product_embedding_text(product)])
        self.storage.store_product_vector(product.id, embedding)
        logger.debug("Indexed product %d", product.id)
        return True
