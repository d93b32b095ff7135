"""Product domain entity and read models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.storefront.entities._base import Entity
from src.storefront.entities.catalog.category.entity import CategorySummary

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class Product(Entity):
    """Product entity representing a sellable item in the catalog.

    This is the write model used by the admin API; listings use the lighter
    ``ProductSummary`` projection.
    """

    name: str = Field(min_length=1, max_length=200, description="Display name")
    slug: str = Field(
        min_length=1, max_length=220, pattern=SLUG_PATTERN, description="URL slug"
    )
    description: str = Field(default="", description="Long description")
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0, description="Units available")
    is_active: bool = Field(default=True, description="Visible on the storefront")
    image_url: str | None = Field(
        default=None, max_length=500, description="Primary image path or URL"
    )
    category_id: str | None = Field(default=None, description="Owning category")

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.slug == other.slug
            and self.price == other.price
            and self.stock == other.stock
            and self.is_active == other.is_active
            and self.image_url == other.image_url
            and self.category_id == other.category_id
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.name,
            self.slug,
            self.price,
            self.category_id,
        ))


class ProductSummary(BaseModel):
    """Columns needed to draw a product card on a listing page."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    price: Decimal
    stock: int
    image_url: str | None = None
    category: CategorySummary | None = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class ProductImage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    alt_text: str = ""
    position: int = 0


class ProductDetail(ProductSummary):
    """Everything shown on a product detail page."""

    description: str = ""
    created_at: datetime
    images: list[ProductImage] = Field(default_factory=list)


class ProductSort(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME = "name"


class ProductFilters(BaseModel):
    """Filters accepted by the listing pages."""

    model_config = ConfigDict(frozen=True)

    category: str | None = Field(default=None, max_length=140)
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)
    q: str | None = Field(default=None, max_length=100)
    in_stock: bool = False

    @model_validator(mode="after")
    def _check_price_range(self) -> "ProductFilters":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot be greater than max_price")
        return self

    def cache_params(self) -> dict[str, str]:
        """Normalized, order-independent representation for cache keys."""
        params = {}
        if self.category:
            params["category"] = self.category
        if self.min_price is not None:
            params["min_price"] = format(self.min_price.normalize(), "f")
        if self.max_price is not None:
            params["max_price"] = format(self.max_price.normalize(), "f")
        if self.q and self.q.strip():
            params["q"] = self.q.strip().lower()
        if self.in_stock:
            params["in_stock"] = "1"
        return params

    def query_params(self) -> dict[str, str]:
        """Parameters to carry over into pagination links."""
        params = self.cache_params()
        if self.q and self.q.strip():
            params["q"] = self.q.strip()
        return params
