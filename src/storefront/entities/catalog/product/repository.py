"""Product repository.

Listing queries are shaped for the product grid:

- the category is eager-loaded in the same statement (``joinedload``) so
  rendering a card never triggers a per-row lazy load;
- only the columns a card needs are selected (``load_only``);
- gallery images, a one-to-many, are fetched with one extra ``IN`` query
  (``selectinload``) and only on the detail page.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import ColumnElement, and_, func, or_
from sqlalchemy.orm import joinedload, load_only, selectinload
from sqlmodel import Session, select

from src.storefront.core.pagination import Cursor, InvalidCursor
from src.storefront.entities.catalog.category.table import CategoryTable
from src.storefront.entities.catalog.product.entity import (
    Product,
    ProductDetail,
    ProductFilters,
    ProductSort,
    ProductSummary,
)
from src.storefront.entities.catalog.product.table import ProductTable


class ProductNotFound(LookupError):
    pass


class DuplicateSlugError(ValueError):
    pass


class UnknownCategoryError(ValueError):
    pass


# sort -> (column, descending)
_SORT_COLUMNS = {
    ProductSort.NEWEST: (ProductTable.created_at, True),
    ProductSort.PRICE_ASC: (ProductTable.price, False),
    ProductSort.PRICE_DESC: (ProductTable.price, True),
    ProductSort.NAME: (ProductTable.name, False),
}

_SUMMARY_COLUMNS = (
    ProductTable.id,
    ProductTable.name,
    ProductTable.slug,
    ProductTable.price,
    ProductTable.stock,
    ProductTable.image_url,
    ProductTable.category_id,
    ProductTable.created_at,
)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _cursor_value(row: ProductTable, sort: ProductSort) -> str:
    column, _ = _SORT_COLUMNS[sort]
    value = getattr(row, column.key)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _parse_cursor_value(cursor: Cursor, sort: ProductSort) -> Any:
    if not isinstance(cursor.value, str):
        raise InvalidCursor("Cursor is not valid")
    try:
        if sort is ProductSort.NEWEST:
            return datetime.fromisoformat(cursor.value)
        if sort in (ProductSort.PRICE_ASC, ProductSort.PRICE_DESC):
            return Decimal(cursor.value)
    except (ValueError, InvalidOperation) as e:
        raise InvalidCursor("Cursor is not valid") from e
    return cursor.value


class ProductRepository:
    """Data-access layer for products."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # -- listing -----------------------------------------------------------

    def _conditions(self, filters: ProductFilters) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [ProductTable.is_active == True]  # noqa: E712
        if filters.category:
            category_id = (
                select(CategoryTable.id)
                .where(CategoryTable.slug == filters.category)
                .scalar_subquery()
            )
            conditions.append(ProductTable.category_id == category_id)
        if filters.min_price is not None:
            conditions.append(ProductTable.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(ProductTable.price <= filters.max_price)
        if filters.q and filters.q.strip():
            pattern = f"%{_escape_like(filters.q.strip())}%"
            conditions.append(ProductTable.name.ilike(pattern, escape="\\"))
        if filters.in_stock:
            conditions.append(ProductTable.stock > 0)
        return conditions

    def _summary_statement(self, filters: ProductFilters, sort: ProductSort):
        column, descending = _SORT_COLUMNS[sort]
        order = (
            (column.desc(), ProductTable.id.desc())
            if descending
            else (column.asc(), ProductTable.id.asc())
        )
        return (
            select(ProductTable)
            .where(*self._conditions(filters))
            .options(
                load_only(*_SUMMARY_COLUMNS),
                joinedload(ProductTable.category).load_only(
                    CategoryTable.id, CategoryTable.name, CategoryTable.slug
                ),
            )
            .order_by(*order)
        )

    def count(self, filters: ProductFilters) -> int:
        statement = (
            select(func.count())
            .select_from(ProductTable)
            .where(*self._conditions(filters))
        )
        return self._session.exec(statement).one()

    def list_page(
        self,
        filters: ProductFilters,
        sort: ProductSort,
        offset: int,
        limit: int,
    ) -> list[ProductSummary]:
        """One page of summaries in a single statement."""
        if limit <= 0:
            return []
        statement = self._summary_statement(filters, sort).offset(offset).limit(limit)
        rows = self._session.exec(statement).all()
        return [ProductSummary.model_validate(row) for row in rows]

    def list_after(
        self,
        filters: ProductFilters,
        sort: ProductSort,
        cursor: Cursor | None,
        limit: int,
    ) -> tuple[list[ProductSummary], Cursor | None]:
        """Keyset page following ``cursor``.

        Returns the summaries and the cursor of the next page, or None when
        this is the last page.
        """
        statement = self._summary_statement(filters, sort)
        if cursor is not None:
            if cursor.sort != sort.value:
                raise InvalidCursor(
                    f"Cursor was issued for sort '{cursor.sort}', not '{sort.value}'"
                )
            column, descending = _SORT_COLUMNS[sort]
            value = _parse_cursor_value(cursor, sort)
            if descending:
                after = or_(
                    column < value, and_(column == value, ProductTable.id < cursor.id)
                )
            else:
                after = or_(
                    column > value, and_(column == value, ProductTable.id > cursor.id)
                )
            statement = statement.where(after)

        rows = self._session.exec(statement.limit(limit + 1)).all()
        has_more = len(rows) > limit
        rows = rows[:limit]

        next_cursor = None
        if has_more and rows:
            last = rows[-1]
            next_cursor = Cursor(sort=sort.value, value=_cursor_value(last, sort), id=last.id)
        return [ProductSummary.model_validate(row) for row in rows], next_cursor

    def get_detail(self, slug_or_id: str) -> ProductDetail | None:
        """Active product with its category and gallery; at most two statements."""
        statement = (
            select(ProductTable)
            .where(
                or_(ProductTable.slug == slug_or_id, ProductTable.id == slug_or_id),
                ProductTable.is_active == True,  # noqa: E712
            )
            .options(
                joinedload(ProductTable.category),
                selectinload(ProductTable.images),
            )
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return ProductDetail.model_validate(row)

    # -- admin CRUD --------------------------------------------------------

    def _check_category(self, category_id: str | None) -> None:
        if category_id is not None and self._session.get(CategoryTable, category_id) is None:
            raise UnknownCategoryError(f"Category '{category_id}' does not exist")

    def _check_slug(self, slug: str, product_id: str | None = None) -> None:
        statement = select(ProductTable.id).where(ProductTable.slug == slug)
        existing = self._session.exec(statement).first()
        if existing is not None and existing != product_id:
            raise DuplicateSlugError(f"Product slug '{slug}' already exists")

    def create(self, product: Product) -> Product:
        self._check_slug(product.slug)
        self._check_category(product.category_id)
        row = ProductTable.model_validate(product.model_dump())
        self._session.add(row)
        self._session.flush()
        return Product.model_validate(row, from_attributes=True)

    def get(self, product_id: str) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def get_by_slug(self, slug: str) -> Product | None:
        statement = select(ProductTable).where(ProductTable.slug == slug)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def update(self, product: Product) -> Product:
        row = self._session.get(ProductTable, product.id)
        if row is None:
            raise ProductNotFound(f"Product with id {product.id} not found")
        self._check_slug(product.slug, product.id)
        self._check_category(product.category_id)

        data = product.model_dump(exclude={"id", "created_at", "updated_at"})
        for field_name, value in data.items():
            setattr(row, field_name, value)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def delete(self, product_id: str) -> bool:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
