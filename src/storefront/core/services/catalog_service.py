"""Catalog read service: cached listings, details and categories."""

from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, RootModel
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from src.storefront.core.pagination import (
    Page,
    Paginator,
    decode_cursor,
    encode_cursor,
)
from src.storefront.core.services.database.db_session import DbSessionService
from src.storefront.core.storage.listing_cache import ListingCache, make_listing_key
from src.storefront.entities.catalog.category import CategoryRepository, CategorySummary
from src.storefront.entities.catalog.product import (
    ProductDetail,
    ProductFilters,
    ProductNotFound,
    ProductRepository,
    ProductSort,
    ProductSummary,
)
from src.storefront.runtime.context import get_config

R = TypeVar("R")


class ProductPage(BaseModel):
    """One listing page; also the JSON payload of the AJAX endpoint."""

    products: list[ProductSummary]
    page: int | None = None
    per_page: int
    num_pages: int | None = None
    total: int | None = None
    has_next: bool
    has_previous: bool
    next_page: int | None = None
    previous_page: int | None = None
    next_cursor: str | None = None
    cached: bool = False

    @classmethod
    def from_page(cls, page: Page[ProductSummary]) -> "ProductPage":
        return cls(
            products=page.items,
            page=page.number,
            per_page=page.paginator.per_page,
            num_pages=page.paginator.num_pages,
            total=page.paginator.count,
            has_next=page.has_next(),
            has_previous=page.has_previous(),
            next_page=page.next_page_number() if page.has_next() else None,
            previous_page=page.previous_page_number() if page.has_previous() else None,
        )


class CategoryList(RootModel[list[CategorySummary]]):
    pass


class CatalogService:
    """Serves catalog reads through the listing cache.

    Every cache key embeds the current catalog version, so ``invalidate()``
    after a write is enough to make all listings fresh again.
    """

    def __init__(self, database_service: DbSessionService, cache: ListingCache) -> None:
        self._database = database_service
        self._cache = cache

    @property
    def cache(self) -> ListingCache:
        return self._cache

    async def _run(self, work: Callable[[Session], R]) -> R:
        def _in_session() -> R:
            with self._database.session_scope() as session:
                return work(session)

        return await run_in_threadpool(_in_session)

    async def _key(self, kind: str, params: dict[str, Any]) -> str:
        config = get_config()
        version = await self._cache.get_version()
        return make_listing_key(config.cache.key_prefix, version, kind, params)

    async def list_products(
        self,
        filters: ProductFilters,
        sort: ProductSort = ProductSort.NEWEST,
        page: Any = 1,
        per_page: int | None = None,
        strict: bool = True,
    ) -> ProductPage:
        """Page-number listing.

        Raises:
            InvalidPage: in strict mode, for a page that is not an integer
                or out of range. Lenient mode clamps instead.
        """
        config = get_config()
        per_page = per_page or config.pagination.per_page
        orphans = config.pagination.orphans

        key = await self._key(
            "list",
            {
                **filters.cache_params(),
                "sort": sort.value,
                "page": str(page),
                "per_page": per_page,
                "strict": strict,
            },
        )
        cached = await self._cache.get(key, ProductPage)
        if cached is not None:
            return cached.model_copy(update={"cached": True})

        def _load(session: Session) -> ProductPage:
            repository = ProductRepository(session)
            paginator = Paginator(repository.count(filters), per_page, orphans=orphans)
            number = (
                paginator.validate_number(page)
                if strict
                else paginator.get_page_number(page)
            )
            offset, limit = paginator.bounds(number)
            items = repository.list_page(filters, sort, offset, limit)
            return ProductPage.from_page(paginator.page(number, items))

        result = await self._run(_load)
        await self._cache.set(key, result, config.cache.listing_ttl)
        return result

    async def list_products_after(
        self,
        filters: ProductFilters,
        sort: ProductSort = ProductSort.NEWEST,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> ProductPage:
        """Keyset listing for "load more"; ``cursor`` None starts at the top.

        Raises:
            InvalidCursor: for a malformed cursor or one from another sort.
        """
        config = get_config()
        limit = limit or config.pagination.per_page
        position = decode_cursor(cursor, sort.value) if cursor else None

        key = await self._key(
            "after",
            {
                **filters.cache_params(),
                "sort": sort.value,
                "cursor": cursor or "",
                "limit": limit,
            },
        )
        cached = await self._cache.get(key, ProductPage)
        if cached is not None:
            return cached.model_copy(update={"cached": True})

        def _load(session: Session) -> ProductPage:
            items, next_position = ProductRepository(session).list_after(
                filters, sort, position, limit
            )
            return ProductPage(
                products=items,
                per_page=limit,
                has_next=next_position is not None,
                has_previous=position is not None,
                next_cursor=encode_cursor(next_position) if next_position else None,
            )

        result = await self._run(_load)
        await self._cache.set(key, result, config.cache.listing_ttl)
        return result

    async def get_product(self, slug_or_id: str) -> ProductDetail:
        """Cached detail of an active product.

        Raises:
            ProductNotFound: when no active product has this slug or id.
        """
        config = get_config()
        key = await self._key("detail", {"product": slug_or_id})
        cached = await self._cache.get(key, ProductDetail)
        if cached is not None:
            return cached

        detail = await self._run(lambda s: ProductRepository(s).get_detail(slug_or_id))
        if detail is None:
            raise ProductNotFound(f"Product '{slug_or_id}' not found")
        await self._cache.set(key, detail, config.cache.detail_ttl)
        return detail

    async def list_categories(self) -> list[CategorySummary]:
        config = get_config()
        key = await self._key("categories", {})
        cached = await self._cache.get(key, CategoryList)
        if cached is not None:
            return cached.root

        categories = await self._run(lambda s: CategoryRepository(s).list_all())
        await self._cache.set(key, CategoryList(categories), config.cache.listing_ttl)
        return categories

    async def invalidate(self) -> int:
        """Make every cached listing stale; returns the new catalog version."""
        version = await self._cache.bump_version()
        logger.info("Catalog cache invalidated", catalog_version=version)
        return version
