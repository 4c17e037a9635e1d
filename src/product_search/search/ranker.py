"""
Ordering helpers for filtered search results.
"""

from __future__ import annotations

from typing import Any, Callable, Literal

from ..errors import InvalidInput, InvalidSortField
from ..storage.base import ProductRecord


SortField = Literal["price", "name"]
SortDirection = Literal["asc", "desc"]

_SORT_KEYS: dict[str, Callable[[ProductRecord], Any]] = {
    "price": lambda product: product.price,
    "name": lambda product: product.name,
}


def normalize_sort_field(sort_by: str | None) -> SortField | None:
    """Return the canonical sort field, or None for relevance order."""
    if sort_by is None:
        return None
    key = sort_by.strip().lower()
    if key == "price":
        return "price"
    if key == "name":
        return "name"
    raise InvalidSortField(sort_by)


def normalize_sort_direction(sort_direction: str | None) -> SortDirection:
    if sort_direction is None:
        return "asc"
    direction = sort_direction.strip().lower()
    if direction == "asc":
        return "asc"
    if direction == "desc":
        return "desc"
    raise InvalidInput(f"Invalid sort direction: {sort_direction!r}")


def sort_products(
    products: list[ProductRecord],
    *,
    sort_by: str | None,
    sort_direction: str | None = None,
) -> list[ProductRecord]:
    """Sort products by an explicit field, or keep relevance order when none is given.

    Sorting is stable in both directions: products with equal keys stay in
    relevance order.
    """
    field = normalize_sort_field(sort_by)
    direction = normalize_sort_direction(sort_direction)
    if field is None:
        return list(products)
    return sorted(products, key=_SORT_KEYS[field], reverse=direction == "desc")
