"""Request logging with per-request SQL statement counts."""

import time
import uuid

from fastapi import Request
from loguru import logger
from starlette.responses import JSONResponse

from src.storefront.core.services import QueryCounter
from src.storefront.runtime.context import get_config


def _client_ip(request: Request) -> str:
    # uvicorn rewrites client from X-Forwarded-For for trusted proxies only
    return request.client.host if request.client else "unknown"


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    config = get_config()

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": _client_ip(request),
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    app_deps = getattr(request.app.state, "app_dependencies", None)
    counter: QueryCounter | None = app_deps.query_counter if app_deps else None

    start = time.perf_counter()

    with logger.contextualize(**base_ctx):
        if counter is None:
            tally = None
            response = await _dispatch(request, call_next, request_id, start)
        else:
            with counter.track() as tally:
                response = await _dispatch(request, call_next, request_id, start)

        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        query_count = tally.count if tally is not None else None
        log = logger.bind(
            status_code=response.status_code,
            duration_ms=duration_ms,
            query_count=query_count,
        )
        if query_count is not None and query_count > config.database.query_count_warning:
            log.warning(
                "request.end: {} SQL statements exceed the limit of {}",
                query_count,
                config.database.query_count_warning,
            )
        else:
            log.info("request.end")

        response.headers.setdefault("X-Request-ID", request_id)
        if config.app.debug_headers and query_count is not None:
            response.headers["X-Query-Count"] = str(query_count)
        return response


async def _dispatch(request: Request, call_next, request_id: str, start: float):
    try:
        return await call_next(request)
    except Exception as exc:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=500,
            duration_ms=round(duration_ms, 1),
            error_type=type(exc).__name__,
        ).exception("request.error")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error", "request_id": request_id},
        )
