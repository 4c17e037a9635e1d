"""Search helpers for the product catalog."""

from .filters import ProductFilter, filter_candidates
from .pipeline import ProductQuery, SearchPipeline, normalize_query_text, validate_query
from .ranker import normalize_sort_direction, normalize_sort_field, sort_products

__all__ = [
    "ProductFilter",
    "filter_candidates",
    "ProductQuery",
    "SearchPipeline",
    "normalize_query_text",
    "validate_query",
    "normalize_sort_direction",
    "normalize_sort_field",
    "sort_products",
]
