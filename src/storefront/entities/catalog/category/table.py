"""Category database table model."""

from typing import TYPE_CHECKING

from sqlmodel import Field, Relationship

from src.storefront.entities._base import EntityTable

if TYPE_CHECKING:
    from src.storefront.entities.catalog.product.table import ProductTable


class CategoryTable(EntityTable, table=True):
    """Database persistence model for categories."""

    __tablename__ = "category"

    name: str = Field(max_length=120)
    slug: str = Field(max_length=140, unique=True, index=True)
    description: str | None = None

    products: list["ProductTable"] = Relationship(back_populates="category")
