"""Product database table models."""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Index
from sqlmodel import Field, Relationship

from src.storefront.entities._base import EntityTable

if TYPE_CHECKING:
    from src.storefront.entities.catalog.category.table import CategoryTable


class ProductTable(EntityTable, table=True):
    """Database persistence model for products.

    The indexes mirror the listing queries: filter by category and price,
    order by recency, price or name, and look up by slug.
    """

    __tablename__ = "product"
    __table_args__ = (
        Index("ix_product_active_created", "is_active", "created_at"),
        Index("ix_product_category_price", "category_id", "price"),
    )

    name: str = Field(max_length=200, index=True)
    slug: str = Field(max_length=220, unique=True, index=True)
    description: str = Field(default="")
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2, index=True)
    stock: int = Field(default=0)
    is_active: bool = Field(default=True)
    image_url: str | None = Field(default=None, max_length=500)
    category_id: str | None = Field(default=None, foreign_key="category.id", index=True)

    category: Optional["CategoryTable"] = Relationship(back_populates="products")
    images: list["ProductImageTable"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={
            "order_by": "ProductImageTable.position",
            "cascade": "all, delete-orphan",
        },
    )


class ProductImageTable(EntityTable, table=True):
    """Gallery image shown on the product detail page."""

    __tablename__ = "product_image"

    product_id: str = Field(foreign_key="product.id", index=True)
    url: str = Field(max_length=500)
    alt_text: str = Field(default="", max_length=200)
    position: int = Field(default=0)

    product: ProductTable = Relationship(back_populates="images")
