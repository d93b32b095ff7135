"""Category repository."""

from sqlmodel import Session, select

from src.storefront.entities.catalog.category.entity import Category, CategorySummary
from src.storefront.entities.catalog.category.table import CategoryTable


class CategoryRepository:
    """Data-access layer for categories."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, category: Category) -> Category:
        if self.get_by_slug(category.slug) is not None:
            raise ValueError(f"Category slug '{category.slug}' already exists")
        row = CategoryTable.model_validate(category.model_dump())
        self._session.add(row)
        self._session.flush()
        return Category.model_validate(row, from_attributes=True)

    def get(self, category_id: str) -> Category | None:
        row = self._session.get(CategoryTable, category_id)
        if row is None:
            return None
        return Category.model_validate(row, from_attributes=True)

    def get_by_slug(self, slug: str) -> Category | None:
        statement = select(CategoryTable).where(CategoryTable.slug == slug)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Category.model_validate(row, from_attributes=True)

    def list_all(self) -> list[CategorySummary]:
        statement = select(CategoryTable).order_by(CategoryTable.name)
        return [
            CategorySummary.model_validate(row)
            for row in self._session.exec(statement).all()
        ]
