"""JSON catalog endpoints used by the listing script and API clients."""

import hashlib
import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.responses import JSONResponse, Response

from src.storefront.api.http.deps import (
    get_asset_urls,
    get_catalog_service,
    get_per_page,
    get_product_filters,
)
from src.storefront.core.assets import AssetUrls
from src.storefront.core.pagination import EmptyPage, InvalidCursor, PageNotAnInteger
from src.storefront.core.services import CatalogService
from src.storefront.entities.catalog.category import CategorySummary
from src.storefront.entities.catalog.product import (
    ProductDetail,
    ProductFilters,
    ProductNotFound,
    ProductSort,
)
from src.storefront.runtime.context import get_config

router = APIRouter(tags=["catalog"])


def compute_etag(payload: Any) -> str:
    """Weak validator over the response content.

    ``cached`` only says where the content came from, so it is left out:
    a hit and a miss for the same listing share one ETag.
    """
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return f'W/"{hashlib.sha1(body.encode("utf-8")).hexdigest()}"'


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    if not if_none_match:
        return False
    if if_none_match.strip() == "*":
        return True

    def _opaque(tag: str) -> str:
        tag = tag.strip()
        return tag[2:] if tag.startswith("W/") else tag

    return any(_opaque(tag) == _opaque(etag) for tag in if_none_match.split(","))


def _conditional_json(request: Request, payload: dict[str, Any], cached: bool) -> Response:
    etag = compute_etag(payload)
    headers = {
        "ETag": etag,
        "Cache-Control": f"public, max-age={get_config().app.listing_max_age}",
        "Vary": "Accept-Encoding",
    }
    if etag_matches(request.headers.get("if-none-match"), etag):
        return Response(status_code=304, headers=headers)
    headers["X-Cache"] = "HIT" if cached else "MISS"
    return JSONResponse(content={**payload, "cached": cached}, headers=headers)


@router.get("/products", response_model=None)
async def list_products(
    request: Request,
    filters: ProductFilters = Depends(get_product_filters),
    sort: ProductSort = Query(default=ProductSort.NEWEST),
    page: str | None = Query(default=None, max_length=20),
    cursor: str | None = Query(default=None, max_length=512),
    per_page: int = Depends(get_per_page),
    catalog: CatalogService = Depends(get_catalog_service),
    assets: AssetUrls = Depends(get_asset_urls),
) -> Response:
    """One listing page as JSON.

    Either ``page`` (numbered pages) or ``cursor`` (keyset "load more") may
    be given, not both. Unlike the HTML page, numbers are not clamped: a
    malformed page is a 400 and a page past the end is a 404.
    """
    if page is not None and cursor is not None:
        raise HTTPException(
            status_code=400, detail="Use either 'page' or 'cursor', not both"
        )

    try:
        if cursor is not None:
            listing = await catalog.list_products_after(filters, sort, cursor, per_page)
        else:
            listing = await catalog.list_products(
                filters, sort, page or 1, per_page, strict=True
            )
    except InvalidCursor as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PageNotAnInteger as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except EmptyPage as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    payload = listing.model_dump(mode="json", exclude={"cached"})
    for product in payload["products"]:
        product["url"] = str(request.url_for("product_detail", slug=product["slug"]).path)
        product["thumbnail_url"] = assets.thumbnail_url(product["image_url"])
    return _conditional_json(request, payload, listing.cached)


@router.get("/products/{slug}", response_model=ProductDetail)
async def get_product(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ProductDetail:
    try:
        return await catalog.get_product(slug)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail="Product not found") from e


@router.get("/categories", response_model=list[CategorySummary])
async def list_categories(
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[CategorySummary]:
    return await catalog.list_categories()
