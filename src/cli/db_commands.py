"""Database CLI commands."""

import typer
from rich.panel import Panel
from rich.table import Table

from src.storefront.core.services import DbSessionService
from src.storefront.runtime.init_db import init_db
from src.storefront.runtime.seed import seed_catalog

from .utils import console

db_app = typer.Typer(help="🗄️  Database commands")


@db_app.command(name="init")
def init() -> None:
    """
    🏗️  Create catalog tables and indexes.

    Existing tables are left untouched.
    """
    database_service = DbSessionService()
    try:
        init_db(database_service)
    finally:
        database_service.dispose()
    console.print("[green]✅ Database tables created[/green]")


@db_app.command(name="seed")
def seed(
    products: int = typer.Option(200, min=1, help="Number of products to create"),
    categories: int = typer.Option(6, min=1, help="Number of categories"),
    seed_value: int = typer.Option(42, "--seed", help="Random seed"),
) -> None:
    """
    🌱 Fill the catalog with deterministic demo data.

    Re-running with the same seed skips products that already exist.
    Remember to run 'storefront cache clear' if the app is running.
    """
    console.print(
        Panel.fit("[bold blue]Seeding demo catalog[/bold blue]", border_style="blue")
    )
    database_service = DbSessionService()
    try:
        database_service.create_all()
        with database_service.session_scope() as session:
            result = seed_catalog(
                session, categories=categories, products=products, seed=seed_value
            )
    finally:
        database_service.dispose()

    table = Table(title="Seed result")
    table.add_column("Entity", style="cyan")
    table.add_column("Created", justify="right", style="green")
    table.add_row("Categories", str(result.categories))
    table.add_row("Products", str(result.products))
    table.add_row("Product images", str(result.images))
    console.print(table)
