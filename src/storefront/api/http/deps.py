"""FastAPI dependency implementations."""

from collections.abc import Iterator

from fastapi import HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlmodel import Session

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.assets import AssetUrls
from src.storefront.core.services import CatalogService
from src.storefront.entities.catalog.product import ProductFilters
from src.storefront.runtime.context import get_config


def get_db_session(request: Request) -> Iterator[Session]:
    """Get a request-scoped database session; handlers commit their writes."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_catalog_service(request: Request) -> CatalogService:
    """Get the catalog service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.catalog_service


def get_asset_urls(request: Request) -> AssetUrls:
    """Get the asset URL builder."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.asset_urls


def get_product_filters(
    category: str | None = Query(default=None, max_length=140),
    min_price: str | None = Query(default=None, max_length=20),
    max_price: str | None = Query(default=None, max_length=20),
    q: str | None = Query(default=None, max_length=100),
    in_stock: bool = Query(default=False),
) -> ProductFilters:
    """Collect listing filters from the query string.

    Empty form fields count as absent. Prices are validated by
    ``ProductFilters``, so malformed values and an inverted range are
    reported like any other query validation error.
    """
    try:
        return ProductFilters(
            category=category or None,
            min_price=min_price or None,
            max_price=max_price or None,
            q=q or None,
            in_stock=in_stock,
        )
    except ValidationError as e:
        raise RequestValidationError(
            e.errors(include_url=False, include_context=False)
        ) from e


def get_per_page(per_page: int | None = Query(default=None, ge=1)) -> int:
    pagination = get_config().pagination
    if per_page is None:
        return pagination.per_page
    if per_page > pagination.max_per_page:
        raise HTTPException(
            status_code=422,
            detail=f"per_page cannot exceed {pagination.max_per_page}",
        )
    return per_page
