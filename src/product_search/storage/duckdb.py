"""
DuckDB storage backend for the product catalog and its embeddings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Sequence

import duckdb

from ..errors import IndexUnavailable
from .base import Candidate, ProductRecord


_PRODUCT_COLUMNS = "id, name, description, price, category, brand, upc"


class DuckDBStorage:
    """DuckDB-backed catalog store and cosine-distance vector index."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        if read_only:
            # Read-only opens never create the file; a missing catalog is an error.
            try:
                self._conn = duckdb.connect(self.db_path, read_only=True)
            except duckdb.Error as exc:
                raise IndexUnavailable(
                    f"Cannot open catalog {self.db_path}: {exc}"
                ) from exc
            return
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path)
        if initialize:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS products (
                id BIGINT PRIMARY KEY,
                name VARCHAR NOT NULL,
                description VARCHAR NOT NULL DEFAULT '',
                price DOUBLE NOT NULL,
                category VARCHAR NOT NULL,
                brand VARCHAR,
                upc VARCHAR,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        # No FK to products: vectors are removed explicitly in delete_product.
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS product_vectors (
                product_id BIGINT PRIMARY KEY,
                embedding FLOAT[] NOT NULL,
                embedded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def upsert_product(self, product: ProductRecord) -> None:
        self._conn.execute(
            """
            INSERT INTO products (id, name, description, price, category, brand, upc)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                price = excluded.price,
                category = excluded.category,
                brand = excluded.brand,
                upc = excluded.upc,
                updated_at = now()
            """,
            [
                product.id,
                product.name,
                product.description,
                product.price,
                product.category,
                product.brand,
                product.upc,
            ],
        )

    def delete_product(self, product_id: int) -> bool:
        """Delete a product and its vector. Return True if the product existed."""
        self.delete_product_vector(product_id)
        row = self._conn.execute(
            "DELETE FROM products WHERE id = ? RETURNING id",
            [product_id],
        ).fetchone()
        return row is not None

    def get_product(self, product_id: int) -> ProductRecord | None:
        row = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ? LIMIT 1",
            [product_id],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_product(row)

    def list_products(self) -> list[ProductRecord]:
        rows = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY id"
        ).fetchall()
        return [self._row_to_product(row) for row in rows]

    def hydrate(self, ids: Iterable[int]) -> dict[int, ProductRecord]:
        unique_ids = sorted({int(product_id) for product_id in ids})
        if not unique_ids:
            return {}
        placeholders = ", ".join(["?"] * len(unique_ids))
        rows = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id IN ({placeholders})",
            unique_ids,
        ).fetchall()
        products = [self._row_to_product(row) for row in rows]
        return {product.id: product for product in products}

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------

    def store_product_vector(self, product_id: int, embedding: Sequence[float]) -> None:
        self.store_product_vectors([(product_id, embedding)])

    def store_product_vectors(
        self,
        product_embeddings: Sequence[tuple[int, Sequence[float]]],
    ) -> int:
        """Bulk-store (product_id, embedding) pairs. Return count written."""
        if not product_embeddings:
            return 0

        expected_dim = self.vector_dimension()
        for product_id, embedding in product_embeddings:
            if expected_dim is None:
                expected_dim = len(embedding)
            if len(embedding) != expected_dim or expected_dim == 0:
                raise ValueError(
                    f"Vector dimension mismatch for product {product_id}: "
                    f"expected {expected_dim}, got {len(embedding)}"
                )

        ids = [int(product_id) for product_id, _ in product_embeddings]
        placeholders = ", ".join(["?"] * len(ids))
        self._conn.execute(
            f"DELETE FROM product_vectors WHERE product_id IN ({placeholders})",
            ids,
        )
        self._conn.executemany(
            """
            INSERT INTO product_vectors (product_id, embedding)
            VALUES (?, ?::FLOAT[])
            """,
            [
                (int(product_id), [float(v) for v in embedding])
                for product_id, embedding in product_embeddings
            ],
        )
        return len(product_embeddings)

    def delete_product_vector(self, product_id: int) -> bool:
        row = self._conn.execute(
            "DELETE FROM product_vectors WHERE product_id = ? RETURNING product_id",
            [product_id],
        ).fetchone()
        return row is not None

    def products_without_vectors(self) -> list[ProductRecord]:
        rows = self._conn.execute(
            """
            SELECT p.id, p.name, p.description, p.price, p.category, p.brand, p.upc
            FROM products p
            LEFT JOIN product_vectors v ON v.product_id = p.id
            WHERE v.product_id IS NULL
            ORDER BY p.id
            """
        ).fetchall()
        return [self._row_to_product(row) for row in rows]

    def count_vectors(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM product_vectors").fetchone()
        return int(row[0]) if row else 0

    def has_vectors(self) -> bool:
        return self.count_vectors() > 0

    def vector_dimension(self) -> int | None:
        row = self._conn.execute(
            "SELECT len(embedding) FROM product_vectors LIMIT 1"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def nearest(self, query: Sequence[float], k: int) -> list[Candidate]:
        """Return up to *k* products ordered by ascending cosine distance."""
        if k <= 0:
            return []

        try:
            rows = self._conn.execute(
                """
                SELECT
                    product_id,
                    1 - list_cosine_similarity(embedding, ?::FLOAT[]) AS distance
                FROM product_vectors
                ORDER BY distance ASC, product_id ASC
                LIMIT ?
                """,
                [[float(v) for v in query], k],
            ).fetchall()
        except duckdb.Error as exc:
            raise IndexUnavailable(f"Vector search failed: {exc}") from exc

        return [Candidate(product_id=int(row[0]), distance=float(row[1])) for row in rows]

    @staticmethod
    def _row_to_product(row: tuple[Any, ...]) -> ProductRecord:
        return ProductRecord(
            id=int(row[0]),
            name=str(row[1]),
            description=str(row[2]),
            price=float(row[3]),
            category=str(row[4]),
            brand=str(row[5]) if row[5] is not None else None,
            upc=str(row[6]) if row[6] is not None else None,
        )
