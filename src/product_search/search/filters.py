"""
Metadata filter applied to hydrated products.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from ..storage.base import Candidate, ProductRecord


@dataclass(frozen=True)
class ProductFilter:
    """Category and inclusive price-range conditions.

    Absent conditions always pass. Bounds given out of order describe an
    empty range, so nothing matches.
    """

    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.category is None and self.min_price is None and self.max_price is None

    def matches(self, product: ProductRecord) -> bool:
        if self.category is not None and product.category != self.category:
            return False
        if self.min_price is not None and product.price < self.min_price:
            return False
        if self.max_price is not None and product.price > self.max_price:
            return False
        return True


def filter_candidates(
    candidates: Iterable[Candidate],
    products: Mapping[int, ProductRecord],
    product_filter: ProductFilter,
) -> list[ProductRecord]:
    """Keep hydrated, matching products in candidate order.

    Candidates without a hydrated product were deleted after retrieval and
    are dropped.
    """
    kept: list[ProductRecord] = []
    for candidate in candidates:
        product = products.get(candidate.product_id)
        if product is None:
            continue
        if product_filter.matches(product):
            kept.append(product)
    return kept
