"""Tests for cached catalog reads."""

from decimal import Decimal

import pytest

from src.storefront.core.pagination import EmptyPage, InvalidCursor, PageNotAnInteger
from src.storefront.core.services import CatalogService, QueryCounter
from src.storefront.entities.catalog.product import (
    ProductFilters,
    ProductNotFound,
    ProductRepository,
    ProductSort,
)

ALL = ProductFilters()


class TestListProducts:
    """Numbered listing pages."""

    @pytest.mark.asyncio
    async def test_first_page(self, catalog_service: CatalogService, catalog_products):
        listing = await catalog_service.list_products(ALL, ProductSort.NAME, 1)

        assert [p.slug for p in listing.products] == [
            "alpha-speaker",
            "bravo-headphones",
            "charlie-novel",
            "delta-atlas",
        ]
        assert listing.total == 9
        assert listing.num_pages == 3
        assert listing.has_next and not listing.has_previous
        assert listing.next_page == 2
        assert listing.cached is False

    @pytest.mark.asyncio
    async def test_second_read_is_served_from_cache(
        self,
        catalog_service: CatalogService,
        catalog_products,
        query_counter: QueryCounter,
    ):
        with query_counter.track() as miss:
            first = await catalog_service.list_products(ALL, ProductSort.NEWEST, 2)
        with query_counter.track() as hit:
            second = await catalog_service.list_products(ALL, ProductSort.NEWEST, 2)

        assert miss.count == 2  # count + page
        assert hit.count == 0
        assert second.cached is True
        assert second.products == first.products

    @pytest.mark.asyncio
    async def test_filters_are_part_of_the_key(self, catalog_service, catalog_products):
        audio = await catalog_service.list_products(ProductFilters(category="audio"))
        books = await catalog_service.list_products(ProductFilters(category="books"))

        assert audio.total == 5
        assert books.total == 4
        assert books.cached is False

    @pytest.mark.asyncio
    async def test_strict_mode_rejects_bad_pages(self, catalog_service, catalog_products):
        with pytest.raises(PageNotAnInteger):
            await catalog_service.list_products(ALL, ProductSort.NEWEST, "abc")
        with pytest.raises(EmptyPage):
            await catalog_service.list_products(ALL, ProductSort.NEWEST, 4)

    @pytest.mark.asyncio
    async def test_lenient_mode_clamps(self, catalog_service, catalog_products):
        past_end = await catalog_service.list_products(
            ALL, ProductSort.NEWEST, 99, strict=False
        )
        garbage = await catalog_service.list_products(
            ALL, ProductSort.NEWEST, "abc", strict=False
        )

        assert past_end.page == 3
        assert [p.slug for p in past_end.products] == ["alpha-speaker"]
        assert garbage.page == 1

    @pytest.mark.asyncio
    async def test_empty_catalog_has_one_empty_page(self, catalog_service, categories):
        listing = await catalog_service.list_products(ALL)

        assert listing.products == []
        assert listing.page == 1
        assert listing.num_pages == 1
        assert listing.total == 0

    @pytest.mark.asyncio
    async def test_per_page_override(self, catalog_service, catalog_products):
        listing = await catalog_service.list_products(ALL, ProductSort.NEWEST, 1, 10)

        assert len(listing.products) == 9
        assert listing.num_pages == 1


class TestInvalidation:
    @pytest.mark.asyncio
    async def test_writes_are_visible_after_invalidate(
        self, catalog_service: CatalogService, catalog_products, database_service
    ):
        before = await catalog_service.list_products(ALL, ProductSort.PRICE_DESC, 1)
        assert before.products[0].slug == "golf-amp"

        with database_service.session_scope() as session:
            product = catalog_products["alpha-speaker"].model_copy(
                update={"price": Decimal("150.00")}
            )
            ProductRepository(session).update(product)

        stale = await catalog_service.list_products(ALL, ProductSort.PRICE_DESC, 1)
        assert stale.cached is True
        assert stale.products[0].slug == "golf-amp"

        version = await catalog_service.invalidate()
        fresh = await catalog_service.list_products(ALL, ProductSort.PRICE_DESC, 1)

        assert version == 1
        assert fresh.cached is False
        assert fresh.products[0].slug == "alpha-speaker"


class TestKeysetListing:
    @pytest.mark.asyncio
    async def test_load_more_chain(self, catalog_service: CatalogService, catalog_products):
        first = await catalog_service.list_products_after(ALL, ProductSort.NAME, None, 5)
        second = await catalog_service.list_products_after(
            ALL, ProductSort.NAME, first.next_cursor, 5
        )

        assert first.has_next and not first.has_previous
        assert first.next_cursor is not None
        assert first.total is None and first.page is None
        assert [p.slug for p in second.products] == [
            "foxtrot-cookbook",
            "golf-amp",
            "hotel-guide",
            "india-radio",
        ]
        assert second.has_previous and not second.has_next
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_cursor_for_other_sort(self, catalog_service, catalog_products):
        first = await catalog_service.list_products_after(ALL, ProductSort.NAME, None, 2)

        with pytest.raises(InvalidCursor):
            await catalog_service.list_products_after(
                ALL, ProductSort.PRICE_ASC, first.next_cursor, 2
            )

    @pytest.mark.asyncio
    async def test_garbage_cursor(self, catalog_service, catalog_products):
        with pytest.raises(InvalidCursor):
            await catalog_service.list_products_after(ALL, ProductSort.NAME, "%%%", 2)


class TestDetailAndCategories:
    @pytest.mark.asyncio
    async def test_get_product_is_cached(
        self, catalog_service, catalog_products, query_counter: QueryCounter
    ):
        first = await catalog_service.get_product("alpha-speaker")
        with query_counter.track() as hit:
            second = await catalog_service.get_product("alpha-speaker")

        assert hit.count == 0
        assert second == first
        assert len(second.images) == 2

    @pytest.mark.asyncio
    async def test_unknown_product(self, catalog_service, catalog_products):
        with pytest.raises(ProductNotFound):
            await catalog_service.get_product("no-such-product")

    @pytest.mark.asyncio
    async def test_inactive_product_is_not_found(self, catalog_service, catalog_products):
        with pytest.raises(ProductNotFound):
            await catalog_service.get_product("juliet-hidden")

    @pytest.mark.asyncio
    async def test_categories_sorted_by_name(self, catalog_service, catalog_products):
        categories = await catalog_service.list_categories()
        assert [c.slug for c in categories] == ["audio", "books"]

        cached = await catalog_service.list_categories()
        assert cached == categories
