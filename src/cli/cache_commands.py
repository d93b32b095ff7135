"""Listing cache CLI commands."""

import asyncio

import typer

from src.storefront.core.services import RedisService
from src.storefront.core.storage import get_listing_cache
from src.storefront.runtime.context import get_config

from .utils import console

cache_app = typer.Typer(help="⚡ Listing cache commands")


async def _clear() -> tuple[str, int]:
    config = get_config()
    redis_service = RedisService(config.redis, config.app.environment)
    try:
        cache = await get_listing_cache(config.cache, redis_service.get_client())
        removed = await cache.clear()
        return cache.backend, removed
    finally:
        await redis_service.close()


@cache_app.command(name="clear")
def clear() -> None:
    """
    🧹 Drop cached listings and bump the catalog version.

    Only the shared Redis cache can be cleared from here; in-memory caches
    live inside each server worker and expire on their own.
    """
    backend, removed = asyncio.run(_clear())
    if backend != "redis":
        console.print(
            f"[yellow]⚠️  Cache backend is '{backend}'; nothing shared to clear[/yellow]"
        )
        return
    console.print(f"[green]✅ Removed {removed} cached entries[/green]")
