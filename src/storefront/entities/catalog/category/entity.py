"""Category domain entity."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.storefront.entities._base import Entity


class Category(Entity):
    """A group of products shown together on the storefront."""

    name: str = Field(min_length=1, max_length=120, description="Display name")
    slug: str = Field(
        min_length=1,
        max_length=140,
        pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        description="URL-safe unique identifier",
    )
    description: str | None = Field(default=None)

    def __eq__(self, other: Any) -> bool:
        """Compare categories by business attributes, ignoring timestamps."""
        if not isinstance(other, Category):
            return False
        return (
            self.id == other.id
            and self.name == other.name
            and self.slug == other.slug
            and self.description == other.description
        )

    def __hash__(self) -> int:
        return hash((self.id, self.name, self.slug))


class CategorySummary(BaseModel):
    """Category projection embedded in product listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
