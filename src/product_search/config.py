"""
Configuration helpers for the product catalog and search pipeline.
"""

from __future__ import annotations

import os
from pathlib import Path


DEFAULT_DB_PATH = "~/.product_search/catalog.duckdb"
ENV_DB_PATH = "PRODUCT_SEARCH_DB_PATH"

DEFAULT_CANDIDATE_LIMIT = 50
ENV_CANDIDATE_LIMIT = "PRODUCT_SEARCH_CANDIDATE_LIMIT"

ENV_CACHE_SIZE = "PRODUCT_SEARCH_CACHE_SIZE"


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) PRODUCT_SEARCH_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def resolve_candidate_limit(override: int | None = None) -> int:
    """Return the vector index over-fetch cap used before metadata filtering."""
    if override is not None:
        value = override
    else:
        value = int(os.getenv(ENV_CANDIDATE_LIMIT, str(DEFAULT_CANDIDATE_LIMIT)))
    if value < 1:
        raise ValueError(f"Candidate limit must be positive, got {value}.")
    return value


def resolve_cache_size(override: int | None = None) -> int | None:
    """Return the embedding cache capacity, or None for an unbounded cache."""
    if override is not None:
        value = override
    else:
        raw = os.getenv(ENV_CACHE_SIZE, "").strip()
        if not raw:
            return None
        value = int(raw)
    if value < 0:
        raise ValueError(f"Cache size must not be negative, got {value}.")
    return value or None
