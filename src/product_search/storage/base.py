"""
Storage interfaces and data models consumed by the search pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, Sequence


@dataclass(frozen=True)
class ProductRecord:
    """A catalog product as stored in the relational store."""

    id: int
    name: str
    description: str
    price: float
    category: str
    brand: str | None = None
    upc: str | None = None

    def to_summary(self) -> dict[str, Any]:
        """Return the fields exposed to search callers."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
        }


@dataclass(frozen=True)
class Candidate:
    """A vector index hit, before hydration and filtering."""

    product_id: int
    distance: float


class VectorIndex(Protocol):
    """Approximate similarity search over product embeddings."""

    def nearest(self, query: Sequence[float], k: int) -> list[Candidate]:
        """Return at most *k* candidates, ordered by ascending distance, ids unique."""


class CatalogStore(Protocol):
    """System of record for product details."""

    def hydrate(self, ids: Iterable[int]) -> Mapping[int, ProductRecord]:
        """Load products by id; ids that do not exist are absent from the result."""
