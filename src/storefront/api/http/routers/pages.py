"""Server-rendered catalog pages."""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.responses import HTMLResponse, RedirectResponse

from src.storefront.api.http.deps import get_catalog_service, get_product_filters
from src.storefront.api.http.templating import render
from src.storefront.core.pagination import Paginator
from src.storefront.core.services import CatalogService
from src.storefront.entities.catalog.product import (
    ProductFilters,
    ProductNotFound,
    ProductSort,
)
from src.storefront.runtime.context import get_config

router = APIRouter(tags=["pages"], include_in_schema=False)


@router.get("/")
async def index() -> RedirectResponse:
    return RedirectResponse(url="/products", status_code=307)


@router.get("/products", response_class=HTMLResponse, name="product_list")
async def product_list(
    request: Request,
    filters: ProductFilters = Depends(get_product_filters),
    sort: ProductSort = Query(default=ProductSort.NEWEST),
    page: str = Query(default="1", max_length=20),
    catalog: CatalogService = Depends(get_catalog_service),
) -> HTMLResponse:
    """Product grid. Bad page numbers fall back to the nearest valid page."""
    config = get_config()
    listing = await catalog.list_products(filters, sort, page, strict=False)
    categories = await catalog.list_categories()

    paginator = Paginator(
        listing.total or 0, listing.per_page, orphans=config.pagination.orphans
    )
    page_links = list(
        paginator.elided_page_range(
            listing.page or 1,
            on_each_side=config.pagination.on_each_side,
            on_ends=config.pagination.on_ends,
        )
    )
    carried = {**filters.query_params()}
    if sort != ProductSort.NEWEST:
        carried["sort"] = sort.value

    def page_url(number: int) -> str:
        return f"?{urlencode({**carried, 'page': number})}"

    response = render(
        request,
        "products/list.html",
        {
            "listing": listing,
            "categories": categories,
            "filters": filters,
            "sort": sort,
            "sorts": list(ProductSort),
            "page_links": page_links,
            "page_url": page_url,
            "api_query": urlencode(carried),
        },
    )
    response.headers["Cache-Control"] = f"public, max-age={config.app.listing_max_age}"
    response.headers["X-Cache"] = "HIT" if listing.cached else "MISS"
    return response


@router.get("/products/{slug}", response_class=HTMLResponse, name="product_detail")
async def product_detail(
    request: Request,
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> HTMLResponse:
    try:
        product = await catalog.get_product(slug)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail="Product not found") from e

    response = render(request, "products/detail.html", {"product": product})
    response.headers["Cache-Control"] = (
        f"public, max-age={get_config().app.listing_max_age}"
    )
    return response
