"""Tests for the DuckDB catalog store and vector index."""

from __future__ import annotations

from pathlib import Path

import pytest

from product_search.embedding_cache import EmbeddingCache
from product_search.errors import IndexUnavailable
from product_search.search import ProductQuery, SearchPipeline
from product_search.storage import DuckDBStorage

from .conftest import (
    CATALOG_PRODUCTS,
    FakeEmbeddingProvider,
    make_product,
)


@pytest.fixture()
def storage(catalog_db: str):
    store = DuckDBStorage(catalog_db)
    yield store
    store.close()


def test_upsert_and_get_product(tmp_path: Path) -> None:
    store = DuckDBStorage(str(tmp_path / "catalog.duckdb"))
    try:
        store.upsert_product(make_product(1, name="Mouse", price=10.0))
        store.upsert_product(make_product(1, name="Mouse v2", price=12.5))

        product = store.get_product(1)
        assert product is not None
        assert product.name == "Mouse v2"
        assert product.price == 12.5
        assert product.brand == "Acme"
        assert store.get_product(99) is None
    finally:
        store.close()


def test_list_products_is_ordered_by_id(storage: DuckDBStorage) -> None:
    assert [p.id for p in storage.list_products()] == [1, 2, 3, 4, 5]


def test_hydrate_omits_missing_ids(storage: DuckDBStorage) -> None:
    products = storage.hydrate({1, 3, 42})

    assert set(products) == {1, 3}
    assert products[1] == CATALOG_PRODUCTS[0]


def test_hydrate_empty_ids(storage: DuckDBStorage) -> None:
    assert storage.hydrate([]) == {}


def test_nearest_orders_by_ascending_distance_with_id_tiebreak(
    storage: DuckDBStorage,
) -> None:
    candidates = storage.nearest([1.0, 0.0, 0.0], 10)

    assert [c.product_id for c in candidates] == [1, 5, 2, 3, 4]
    distances = [c.distance for c in candidates]
    assert distances == sorted(distances)
    assert distances[0] == pytest.approx(0.0, abs=1e-6)
    assert distances[-1] == pytest.approx(2.0, abs=1e-6)


def test_nearest_respects_cap(storage: DuckDBStorage) -> None:
    assert [c.product_id for c in storage.nearest([1.0, 0.0, 0.0], 2)] == [1, 5]


def test_nearest_with_zero_k_returns_empty(storage: DuckDBStorage) -> None:
    assert storage.nearest([1.0, 0.0, 0.0], 0) == []


def test_nearest_dimension_mismatch_raises_index_unavailable(
    storage: DuckDBStorage,
) -> None:
    with pytest.raises(IndexUnavailable):
        storage.nearest([1.0, 0.0], 3)


def test_store_vectors_rejects_dimension_mismatch(storage: DuckDBStorage) -> None:
    with pytest.raises(ValueError, match="dimension mismatch"):
        storage.store_product_vector(1, [1.0, 0.0])


def test_store_vector_replaces_existing(storage: DuckDBStorage) -> None:
    storage.store_product_vector(4, [1.0, 0.0, 0.0])

    assert storage.count_vectors() == 5
    assert [c.product_id for c in storage.nearest([1.0, 0.0, 0.0], 3)] == [1, 4, 5]


def test_delete_product_removes_vector(storage: DuckDBStorage) -> None:
    assert storage.delete_product(1) is True
    assert storage.delete_product(1) is False

    assert storage.get_product(1) is None
    assert 1 not in [c.product_id for c in storage.nearest([1.0, 0.0, 0.0], 10)]
    assert storage.count_vectors() == 4


def test_products_without_vectors(storage: DuckDBStorage) -> None:
    storage.upsert_product(make_product(6))
    storage.delete_product_vector(2)

    assert [p.id for p in storage.products_without_vectors()] == [2, 6]


def test_has_vectors_on_empty_catalog(tmp_path: Path) -> None:
    store = DuckDBStorage(str(tmp_path / "empty.duckdb"))
    try:
        assert store.has_vectors() is False
        assert store.vector_dimension() is None
        assert store.nearest([1.0, 0.0, 0.0], 5) == []
    finally:
        store.close()


def test_pipeline_over_duckdb(storage: DuckDBStorage) -> None:
    provider = FakeEmbeddingProvider({"mouse": [1.0, 0.0, 0.0]})
    pipeline = SearchPipeline(
        provider, storage, storage, cache=EmbeddingCache(), candidate_limit=5
    )

    relevance = pipeline.search(ProductQuery(text="mouse", category="peripherals"))
    cheapest_first = pipeline.search(
        ProductQuery(text="mouse", max_price=50.0, sort_by="price")
    )

    assert [p.id for p in relevance] == [1, 5, 2]
    assert [p.id for p in cheapest_first] == [4, 1, 3, 2]
    assert provider.calls == ["mouse"]


def test_pipeline_from_env_uses_bounded_cache(storage: DuckDBStorage, monkeypatch) -> None:
    monkeypatch.setenv("PRODUCT_SEARCH_CACHE_SIZE", "1")
    provider = FakeEmbeddingProvider()

    pipeline = SearchPipeline.from_env(embedding_provider=provider, storage=storage)
    pipeline.embed_query("mouse")
    pipeline.embed_query("keyboard")
    pipeline.embed_query("mouse")

    assert pipeline.cache.max_entries == 1
    assert provider.calls == ["mouse", "keyboard", "mouse"]


def test_read_only_open_of_missing_catalog_raises(tmp_path: Path) -> None:
    missing = tmp_path / "missing.duckdb"

    with pytest.raises(IndexUnavailable):
        DuckDBStorage(str(missing), read_only=True)

    assert not missing.exists()


def test_read_only_storage_serves_search(catalog_db: str) -> None:
    store = DuckDBStorage(catalog_db, read_only=True)
    try:
        assert [c.product_id for c in store.nearest([1.0, 0.0, 0.0], 2)] == [1, 5]
        assert set(store.hydrate([1, 5])) == {1, 5}
    finally:
        store.close()
