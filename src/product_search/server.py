"""
FastAPI server for ProductSearch.

Exposes semantic product search over the DuckDB catalog, catalog embedding
indexing, and embedding cache management.
"""

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .config import resolve_cache_size, resolve_db_path
from .embedding_cache import EmbeddingCache
from .embeddings import EmbeddingProvider
from .errors import (
    EmbeddingProviderError,
    EmbeddingUnavailable,
    IndexUnavailable,
    InvalidInput,
)
from .indexing import IndexingResult, ProductIndexer
from .search import ProductQuery, SearchPipeline, validate_query
from .storage import DuckDBStorage, ProductRecord

logger = logging.getLogger(__name__)

app = FastAPI(title="ProductSearch", description="Semantic product search")
app.state.embedding_cache = EmbeddingCache(resolve_cache_size())

_UNAVAILABLE_MESSAGE = "Search is temporarily unavailable. Please try again later."
_UNEXPECTED_MESSAGE = "An error occurred while processing your search request"


class _ApiModel(BaseModel):
    """Accepts camelCase (``minPrice``) or snake_case keys; unknown keys fail."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class SearchRequest(_ApiModel):
    """Request model for search queries."""

    query: str
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort_by: str | None = None
    sort_direction: str | None = None
    limit: int | None = None
    db_path: str | None = None


class IndexRequest(_ApiModel):
    """Request model for catalog embedding runs."""

    db_path: str | None = None
    reindex: bool = False


def _error_response(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"status": "error", "code": code, "message": message},
        status_code=status_code,
    )


@app.exception_handler(RequestValidationError)
async def reject_malformed_request(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:]) or 'body'}: {error['msg']}"
        for error in exc.errors()
    )
    logger.info("Rejected malformed request to %s: %s", request.url.path, problems)
    return _error_response("invalid_input", f"Invalid request: {problems}", 400)


def _build_embedding_provider() -> EmbeddingProvider:
    try:
        return EmbeddingProvider()
    except ValueError as exc:
        raise EmbeddingUnavailable("Embedding provider is not configured.") from exc


def _run_search(
    db_path: str, query: ProductQuery, cache: EmbeddingCache
) -> list[ProductRecord]:
    storage = DuckDBStorage(db_path, read_only=True)
    try:
        pipeline = SearchPipeline(
            _build_embedding_provider(),
            storage,
            storage,
            cache=cache,
        )
        return pipeline.search(query)
    finally:
        storage.close()


def _run_indexing(db_path: str, reindex: bool) -> IndexingResult:
    storage = DuckDBStorage(db_path)
    try:
        indexer = ProductIndexer(storage, _build_embedding_provider())
        return indexer.index_products(reindex=reindex)
    finally:
        storage.close()


@app.post("/api/search")
async def search_products(request: SearchRequest):
    """Search the catalog and return products in ranked order."""
    query = ProductQuery(
        text=request.query,
        category=request.category,
        min_price=request.min_price,
        max_price=request.max_price,
        sort_by=request.sort_by,
        sort_direction=request.sort_direction,
        limit=request.limit,
    )
    try:
        validate_query(query)
        resolved_db_path = resolve_db_path(request.db_path)
        products = await asyncio.to_thread(
            _run_search, resolved_db_path, query, app.state.embedding_cache
        )
    except InvalidInput as exc:
        logger.info("Rejected search request: %s", exc)
        return _error_response(exc.code, str(exc), 400)
    except (EmbeddingUnavailable, IndexUnavailable) as exc:
        logger.warning("Search dependency failed: %s", exc, exc_info=exc.__cause__)
        return _error_response(exc.code, _UNAVAILABLE_MESSAGE, 503)
    except Exception:
        logger.exception("Unexpected error while searching for %r", request.query)
        return _error_response("internal_error", _UNEXPECTED_MESSAGE, 500)

    if not products:
        return {
            "status": "info",
            "message": "No products found matching your search criteria",
            "query": request.query,
            "data": [],
        }
    return {
        "status": "success",
        "message": "Search completed successfully",
        "data": [product.to_summary() for product in products],
    }


@app.post("/api/index")
async def index_products(request: IndexRequest):
    """Embed catalog products that do not have a stored vector yet."""
    try:
        resolved_db_path = resolve_db_path(request.db_path)
        result = await asyncio.to_thread(_run_indexing, resolved_db_path, request.reindex)
    except (EmbeddingUnavailable, EmbeddingProviderError) as exc:
        logger.warning("Indexing failed: %s", exc, exc_info=exc.__cause__)
        return _error_response(exc.code, "Embedding service unavailable.", 503)
    except ValueError as exc:
        return _error_response("invalid_input", str(exc), 400)
    except Exception:
        logger.exception("Unexpected error while indexing products")
        return _error_response("internal_error", "Indexing failed.", 500)

    return {
        "status": "success",
        "db_path": resolved_db_path,
        "products_seen": result.products_seen,
        "embeddings_written": result.embeddings_written,
        "total_vectors": result.total_vectors,
    }


@app.delete("/api/cache")
async def clear_embedding_cache() -> dict[str, Any]:
    """Drop every cached query embedding."""
    cache: EmbeddingCache = app.state.embedding_cache
    cleared = len(cache)
    cache.clear()
    return {"status": "success", "cleared": cleared}


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
