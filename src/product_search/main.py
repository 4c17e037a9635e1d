import json
import logging
from pathlib import Path

from typer import Typer, Option, Argument, Exit
from typing import Annotated
from pydantic import BaseModel, Field, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import resolve_db_path
from .embeddings import EmbeddingProvider
from .errors import EmbeddingProviderError, ProductSearchError
from .indexing import ProductIndexer
from .search import ProductQuery, SearchPipeline, validate_query
from .storage import DuckDBStorage, ProductRecord

app = Typer(help="Semantic search over a product catalog.")
console = Console()

DbPathOption = Annotated[
    str | None,
    Option("--db-path", help="DuckDB catalog path (defaults to PRODUCT_SEARCH_DB_PATH)."),
]


class ProductIn(BaseModel):
    """A product entry in a catalog import file."""

    id: int
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    category: str = Field(min_length=1)
    brand: str | None = None
    upc: str | None = None

    def to_record(self) -> ProductRecord:
        return ProductRecord(**self.model_dump())


@app.callback()
def configure(
    verbose: Annotated[
        bool, Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def load(
    file: Annotated[Path, Argument(help="JSON file holding a list of products.")],
    db_path: DbPathOption = None,
) -> None:
    """Load products from a JSON file into the catalog."""
    try:
        raw = json.loads(file.read_text())
        if not isinstance(raw, list):
            raise ValueError("Expected a JSON list of products.")
        products = [ProductIn.model_validate(item).to_record() for item in raw]
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[bold red]Could not read {file}:[/] {exc}")
        raise Exit(code=1)

    storage = DuckDBStorage(resolve_db_path(db_path))
    try:
        for product in products:
            storage.upsert_product(product)
    finally:
        storage.close()
    console.print(f"[bold green]Loaded {len(products)} products.[/]")


@app.command()
def index(
    reindex: Annotated[
        bool, Option("--reindex", help="Re-embed products that already have a vector.")
    ] = False,
    product_id: Annotated[
        int | None,
        Option("--product-id", help="Embed only this product, replacing its vector."),
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Embed catalog products into the vector index."""
    storage = DuckDBStorage(resolve_db_path(db_path))
    try:
        indexer = ProductIndexer(storage, EmbeddingProvider())
        if product_id is not None:
            found = indexer.index_product(product_id)
        else:
            result = indexer.index_products(reindex=reindex)
    except (ValueError, EmbeddingProviderError) as exc:
        console.print(f"[bold red]Indexing failed:[/] {exc}")
        raise Exit(code=1)
    finally:
        storage.close()

    if product_id is not None:
        if not found:
            console.print(f"[bold red]Product {product_id} not found.[/]")
            raise Exit(code=1)
        console.print(f"[bold green]Indexed product {product_id}.[/]")
        return

    console.print(
        Panel(
            f"Products embedded: {result.embeddings_written}/{result.products_seen}\n"
            f"Vectors in index: {result.total_vectors}",
            title="Index",
            title_align="left",
            border_style="bold green",
        )
    )


@app.command()
def search(
    query: Annotated[str, Argument(help="Free-text search query.")],
    category: Annotated[str | None, Option("--category", "-c")] = None,
    min_price: Annotated[float | None, Option("--min-price")] = None,
    max_price: Annotated[float | None, Option("--max-price")] = None,
    sort_by: Annotated[
        str | None, Option("--sort-by", help="Sort by `price` or `name`.")
    ] = None,
    sort_direction: Annotated[
        str, Option("--sort-direction", help="`asc` or `desc`.")
    ] = "asc",
    limit: Annotated[int | None, Option("--limit", "-n")] = None,
    db_path: DbPathOption = None,
) -> None:
    """Search the catalog by meaning."""
    product_query = ProductQuery(
        text=query,
        category=category,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_direction=sort_direction,
        limit=limit,
    )
    try:
        validate_query(product_query)
    except ProductSearchError as exc:
        console.print(f"[bold red]Invalid search:[/] {exc}")
        raise Exit(code=1)

    try:
        storage = DuckDBStorage(resolve_db_path(db_path), read_only=True)
    except ProductSearchError as exc:
        console.print(f"[bold red]Search failed:[/] {exc}")
        raise Exit(code=1)
    try:
        pipeline = SearchPipeline.from_env(
            embedding_provider=EmbeddingProvider(), storage=storage
        )
        products = pipeline.search(product_query)
    except (ValueError, ProductSearchError) as exc:
        console.print(f"[bold red]Search failed:[/] {exc}")
        raise Exit(code=1)
    finally:
        storage.close()

    if not products:
        console.print(f"[bold yellow]No products found matching[/] {query!r}")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    for product in products:
        table.add_row(
            str(product.id), product.name, product.category, f"{product.price:.2f}"
        )
    console.print(table)


@app.command()
def serve(
    host: Annotated[str, Option("--host")] = "127.0.0.1",
    port: Annotated[int, Option("--port")] = 8000,
) -> None:
    """Run the HTTP search API."""
    from .server import run_server

    run_server(host=host, port=port)
