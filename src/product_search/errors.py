"""
Error taxonomy for the product search pipeline.

Each error carries a stable ``code`` that the HTTP boundary reports to
callers in place of the message of the underlying cause.
"""

from __future__ import annotations


class ProductSearchError(Exception):
    """Base class for all search pipeline failures."""

    code = "search_error"


class InvalidInput(ProductSearchError, ValueError):
    """Raised when a request is rejected before any external call."""

    code = "invalid_input"


class InvalidSortField(InvalidInput):
    """Raised when a sort key is not one of the supported fields."""

    code = "invalid_sort_field"

    def __init__(self, sort_by: str) -> None:
        super().__init__(f"Invalid sort field: {sort_by!r}")
        self.sort_by = sort_by


class EmbeddingProviderError(ProductSearchError):
    """Base class for failures raised by the embedding provider."""

    code = "provider_error"


class ProviderUnavailable(EmbeddingProviderError):
    """The embedding service could not be reached or timed out."""

    code = "provider_unavailable"


class ProviderError(EmbeddingProviderError):
    """The embedding service answered with an unusable response."""

    code = "provider_error"


class EmbeddingUnavailable(ProductSearchError):
    """A query embedding could not be produced for a search."""

    code = "embedding_unavailable"


class IndexUnavailable(ProductSearchError):
    """The vector index backend failed."""

    code = "index_unavailable"
