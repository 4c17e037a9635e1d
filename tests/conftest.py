from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import pytest

from product_search.errors import ProviderUnavailable
from product_search.storage import Candidate, DuckDBStorage, ProductRecord


def make_product(
    product_id: int,
    *,
    name: str | None = None,
    price: float = 10.0,
    category: str = "peripherals",
    brand: str | None = "Acme",
) -> ProductRecord:
    return ProductRecord(
        id=product_id,
        name=name or f"Product {product_id}",
        description=f"Description of product {product_id}",
        price=price,
        category=category,
        brand=brand,
    )


class FakeEmbeddingProvider:
    """Records embed calls and returns a fixed vector per text."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        *,
        default: Sequence[float] = (1.0, 0.0, 0.0),
        error: Exception | None = None,
    ) -> None:
        self.vectors = vectors or {}
        self.default = list(default)
        self.error = error
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))


class FakeVectorIndex:
    """Returns preset candidates in the given order, capped at k."""

    def __init__(self, candidates: Iterable[Candidate] = (), error: Exception | None = None) -> None:
        self.candidates = list(candidates)
        self.error = error
        self.calls: list[tuple[list[float], int]] = []

    def nearest(self, query: Sequence[float], k: int) -> list[Candidate]:
        self.calls.append((list(query), k))
        if self.error is not None:
            raise self.error
        return self.candidates[: max(k, 0)]


class FakeCatalog:
    def __init__(self, products: Iterable[ProductRecord] = ()) -> None:
        self.products = {product.id: product for product in products}
        self.calls: list[set[int]] = []

    def hydrate(self, ids: Iterable[int]) -> dict[int, ProductRecord]:
        requested = set(ids)
        self.calls.append(requested)
        return {pid: self.products[pid] for pid in requested if pid in self.products}


def candidates_for(*product_ids: int) -> list[Candidate]:
    """Build candidates with strictly increasing distances in the given order."""
    return [
        Candidate(product_id=pid, distance=round(0.1 * (rank + 1), 3))
        for rank, pid in enumerate(product_ids)
    ]


def unavailable_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider(error=ProviderUnavailable("connection refused"))


# ---------------------------------------------------------------------------
# Mock Google GenAI client
# ---------------------------------------------------------------------------


@dataclass
class FakeEmbedding:
    values: list[float] | None


@dataclass
class FakeEmbedResult:
    embeddings: list[FakeEmbedding] | None


class FakeEmbedModels:
    """Records calls and returns deterministic embeddings."""

    def __init__(self, *, dim_override: int | None = None, count_override: int | None = None) -> None:
        self.calls: list[dict] = []
        self.dim_override = dim_override
        self.count_override = count_override
        self.error: Exception | None = None

    def embed_content(self, *, model: str, contents: list[str], config: dict) -> FakeEmbedResult:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        dim = self.dim_override or config.get("output_dimensionality", 4)
        count = len(contents) if self.count_override is None else self.count_override
        return FakeEmbedResult(
            embeddings=[FakeEmbedding(values=[float(i + 1)] * dim) for i in range(count)]
        )


class FakeGenAIClient:
    def __init__(self, **kwargs) -> None:
        self.models = FakeEmbedModels(**kwargs)


# ---------------------------------------------------------------------------
# DuckDB catalog fixture
# ---------------------------------------------------------------------------

# Cosine distances to the query vector (1, 0, 0):
#   1 -> 0.0, 5 -> 0.0 (tie, broken by id), 2 -> ~0.293, 3 -> 1.0, 4 -> 2.0
CATALOG_VECTORS: dict[int, list[float]] = {
    1: [1.0, 0.0, 0.0],
    2: [1.0, 1.0, 0.0],
    3: [0.0, 1.0, 0.0],
    4: [-1.0, 0.0, 0.0],
    5: [2.0, 0.0, 0.0],
}

CATALOG_PRODUCTS: list[ProductRecord] = [
    make_product(1, name="Wireless Mouse", price=25.0, category="peripherals"),
    make_product(2, name="Bluetooth Keyboard", price=45.0, category="peripherals"),
    make_product(3, name="USB-C Hub", price=30.0, category="accessories"),
    make_product(4, name="Desk Lamp", price=15.0, category="home"),
    make_product(5, name="Gaming Mouse", price=60.0, category="peripherals"),
]


def seed_catalog(db_path: str, *, with_vectors: bool = True) -> None:
    storage = DuckDBStorage(db_path)
    try:
        for product in CATALOG_PRODUCTS:
            storage.upsert_product(product)
        if with_vectors:
            storage.store_product_vectors(list(CATALOG_VECTORS.items()))
    finally:
        storage.close()


@pytest.fixture()
def catalog_db(tmp_path: Path) -> str:
    """Create a seeded catalog with vectors and return its path."""
    db_path = str(tmp_path / "catalog.duckdb")
    seed_catalog(db_path)
    return db_path
