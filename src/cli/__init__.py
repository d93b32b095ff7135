"""Main CLI application module."""

import typer

from .asset_commands import assets_app
from .cache_commands import cache_app
from .db_commands import db_app
from .serve_commands import serve

# Create the main CLI application
app = typer.Typer(
    help="🛒 Storefront CLI - serving, assets and catalog data",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="serve")(serve)
app.add_typer(assets_app, name="assets")
app.add_typer(db_app, name="db")
app.add_typer(cache_app, name="cache")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
