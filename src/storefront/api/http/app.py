"""FastAPI application factory and setup."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.gzip import GZipMiddleware

from src.storefront import __version__
from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.api.http.middleware.request_logging import log_requests
from src.storefront.api.http.middleware.security import SecurityHeadersMiddleware
from src.storefront.api.http.routers import admin, catalog, health, pages
from src.storefront.api.http.static_files import CachedStaticFiles
from src.storefront.api.utils.app_startup import configure_logging
from src.storefront.core.assets import AssetManifest, AssetUrls
from src.storefront.core.services import (
    CatalogService,
    DbSessionService,
    QueryCounter,
    RedisService,
)
from src.storefront.core.storage import get_listing_cache
from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config

__all__ = ["app", "build_dependencies", "create_app"]


def _static_directory(config: ConfigData) -> Path | None:
    """Serve collected assets when they exist, raw sources otherwise."""
    for candidate in (config.static.output_dir, config.static.source_dir):
        path = Path(candidate)
        if path.is_dir():
            return path
    return None


def load_asset_urls(config: ConfigData) -> AssetUrls:
    manifest = AssetManifest.load(
        Path(config.static.output_dir) / config.static.manifest_name
    )
    return AssetUrls(config.static, config.cdn, manifest)


async def build_dependencies(config: ConfigData) -> ApplicationDependencies:
    database_service = DbSessionService()
    query_counter = QueryCounter()
    query_counter.attach(database_service.engine)

    if config.app.environment != "production":
        database_service.create_all()

    redis_service = RedisService(config.redis, config.app.environment)
    listing_cache = await get_listing_cache(config.cache, redis_service.get_client())

    return ApplicationDependencies(
        database_service=database_service,
        query_counter=query_counter,
        redis_service=redis_service,
        listing_cache=listing_cache,
        catalog_service=CatalogService(database_service, listing_cache),
        asset_urls=load_asset_urls(config),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    owns_dependencies = getattr(app.state, "app_dependencies", None) is None
    if owns_dependencies:
        app.state.app_dependencies = await build_dependencies(config)

    deps: ApplicationDependencies = app.state.app_dependencies
    logger.info(
        "Starting up storefront in {} environment",
        config.app.environment,
        cache_backend=deps.listing_cache.backend,
        cdn_enabled=deps.asset_urls.cdn_enabled,
    )
    try:
        yield
    finally:
        logger.info("Shutting down application")
        if owns_dependencies:
            await deps.redis_service.close()
            deps.query_counter.detach()
            deps.database_service.dispose()


def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Build the application.

    ``dependencies`` are used as-is and left open on shutdown; without them
    the lifespan builds (and later closes) its own.
    """
    config = get_config()
    is_production = config.app.environment == "production"

    app = FastAPI(
        title="Storefront",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )
    if dependencies is not None:
        app.state.app_dependencies = dependencies

    # --- CORS configuration ---
    if is_production and "*" in config.app.cors.origins:
        raise RuntimeError("CORS misconfigured: cannot use '*' in production")

    # last added runs first
    app.add_middleware(GZipMiddleware, minimum_size=config.app.gzip_minimum_size)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    # --- Router registration ---
    app.include_router(health.router)
    app.include_router(pages.router)
    app.include_router(catalog.router, prefix="/api")
    app.include_router(admin.router, prefix="/api/admin")

    # --- Static and media files ---
    static_dir = _static_directory(config)
    if static_dir is not None:
        manifest = AssetManifest.load(
            Path(config.static.output_dir) / config.static.manifest_name
        )
        app.mount(
            config.static.url_prefix.rstrip("/"),
            CachedStaticFiles(
                directory=static_dir,
                manifest=manifest,
                max_age=config.static.immutable_max_age,
            ),
            name="static",
        )
    else:
        logger.warning("No static directory found; static files are not served")

    media_dir = Path(config.static.media_dir)
    if media_dir.is_dir():
        app.mount(
            config.static.media_url_prefix.rstrip("/"),
            CachedStaticFiles(directory=media_dir),
            name="media",
        )

    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().server.host,
        port=get_config().server.port,
        access_log=False,  # We handle access logging in middleware
    )
