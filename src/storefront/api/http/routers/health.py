"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 as long as the process serves requests.

    Dependencies are not checked here.
    """
    return {"status": "healthy", "service": "storefront"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    The database is critical and fails the probe with 503. The listing
    cache is not: without Redis the app still serves from process memory.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = get_config()

    checks: dict[str, Any] = {}
    all_healthy = True

    database_type = "sqlite" if config.database.is_sqlite else "postgresql"
    try:
        db_healthy = await run_in_threadpool(app_deps.database_service.health_check)
        checks["database"] = {
            "status": "healthy" if db_healthy else "unhealthy",
            "type": database_type,
            "pool": app_deps.database_service.get_pool_status(),
        }
        if not db_healthy:
            all_healthy = False
    except SQLAlchemyError as e:
        logger.warning("Database readiness check failed", error_message=str(e))
        checks["database"] = {
            "status": "unhealthy",
            "type": database_type,
            "error": str(e),
        }
        all_healthy = False

    cache = app_deps.listing_cache
    cache_check: dict[str, Any] = {
        "status": "healthy" if cache.is_available() else "degraded",
        "backend": cache.backend,
        "version": await cache.get_version(),
    }
    if app_deps.redis_service.is_enabled:
        redis_healthy = await app_deps.redis_service.health_check()
        cache_check["redis"] = "healthy" if redis_healthy else "unhealthy"
        if not redis_healthy:
            cache_check["status"] = "degraded"
    checks["cache"] = cache_check

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }

    if not all_healthy:
        return JSONResponse(status_code=503, content=response)

    return response
