"""Static asset CLI commands."""

from pathlib import Path

import typer
from rich.table import Table

from src.storefront.core.assets import collect_static
from src.storefront.runtime.context import get_config

from .utils import console, format_bytes

assets_app = typer.Typer(help="🎨 Static asset commands")


@assets_app.command(name="collect")
def collect(
    source: Path | None = typer.Option(None, help="Asset source directory"),
    output: Path | None = typer.Option(None, help="Output directory"),
    minify: bool | None = typer.Option(
        None, "--minify/--no-minify", help="Minify CSS and JS"
    ),
    precompress: bool | None = typer.Option(
        None, "--precompress/--no-precompress", help="Write .gz siblings"
    ),
    clean: bool = typer.Option(True, help="Empty the output directory first"),
) -> None:
    """
    📦 Minify, fingerprint and precompress static files.

    Writes each file under its plain and its content-hashed name together
    with a manifest the application uses to emit fingerprinted URLs.
    """
    static = get_config().static
    source_dir = source or Path(static.source_dir)
    output_dir = output or Path(static.output_dir)

    try:
        result = collect_static(
            source_dir,
            output_dir,
            minify=static.minify if minify is None else minify,
            precompress=static.precompress if precompress is None else precompress,
            manifest_name=static.manifest_name,
            clean=clean,
        )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title=f"Collected assets → {output_dir}")
    table.add_column("Asset", style="cyan")
    table.add_column("Fingerprinted", style="green")
    table.add_column("Original", justify="right")
    table.add_column("Final", justify="right")
    table.add_column("Minified", justify="center")

    for item in result.files:
        table.add_row(
            item.path,
            item.fingerprinted,
            format_bytes(item.original_size),
            format_bytes(item.final_size),
            "✓" if item.minified else "-",
        )

    console.print(table)
    console.print(
        f"\n[green]✅ {len(result.files)} files collected, "
        f"{format_bytes(result.saved_bytes)} saved by minification[/green]"
    )
