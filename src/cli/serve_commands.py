"""Production server command."""

import os
from pathlib import Path

import typer
import uvicorn
from rich.panel import Panel

from src.storefront.runtime.context import get_config

from .utils import console

APP_PATH = "src.storefront.api.http.app:app"


def recommended_workers(cpu_count: int | None, max_workers: int) -> int:
    """``2 * cpus + 1`` worker processes, capped at ``max_workers``."""
    cpus = cpu_count or 1
    return max(1, min(2 * cpus + 1, max_workers))


def serve(
    host: str | None = typer.Option(None, help="Bind address (default from config)"),
    port: int | None = typer.Option(None, help="Bind port (default from config)"),
    workers: int | None = typer.Option(
        None, help="Worker processes; 0 derives the count from the CPUs"
    ),
    reload: bool = typer.Option(
        False, help="Reload on code changes (single process, development only)"
    ),
    log_level: str = typer.Option(
        "info", help="Log level (debug, info, warning, error, critical)"
    ),
) -> None:
    """
    🚀 Run the storefront with uvicorn worker processes.

    Each worker is a separate process with its own connection pool, so the
    database must allow ``workers * (pool_size + max_overflow)`` connections.
    """
    config = get_config()
    server = config.server

    host = host or server.host
    port = port or server.port
    requested = server.workers if workers is None else workers
    if reload:
        worker_count = 1
    elif requested > 0:
        worker_count = requested
    else:
        worker_count = recommended_workers(os.cpu_count(), server.max_workers)

    manifest = Path(config.static.output_dir) / config.static.manifest_name
    if config.app.environment == "production":
        if reload:
            console.print("[red]❌ --reload is not allowed in production[/red]")
            raise typer.Exit(1)
        if not manifest.exists():
            console.print(
                "[yellow]⚠️  No asset manifest found; run 'storefront assets collect' "
                "so static files are minified and fingerprinted.[/yellow]"
            )

    console.print(
        Panel.fit(
            f"[bold green]Starting storefront[/bold green]\n"
            f"http://{host}:{port}  workers={worker_count}  "
            f"environment={config.app.environment}",
            border_style="green",
        )
    )

    uvicorn.run(
        APP_PATH,
        host=host,
        port=port,
        workers=None if reload else worker_count,
        reload=reload,
        reload_dirs=["src"] if reload else None,
        log_level=log_level,
        proxy_headers=server.proxy_headers,
        forwarded_allow_ips=server.forwarded_allow_ips,
        timeout_keep_alive=server.timeout_keep_alive,
        access_log=False,  # We handle access logging in middleware
    )
