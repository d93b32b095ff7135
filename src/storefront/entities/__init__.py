"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain and read models
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .catalog.category import Category, CategoryRepository, CategoryTable
from .catalog.product import (
    Product,
    ProductDetail,
    ProductFilters,
    ProductImageTable,
    ProductRepository,
    ProductSort,
    ProductSummary,
    ProductTable,
)

__all__ = [
    "Category",
    "CategoryRepository",
    "CategoryTable",
    "Product",
    "ProductDetail",
    "ProductFilters",
    "ProductImageTable",
    "ProductRepository",
    "ProductSort",
    "ProductSummary",
    "ProductTable",
]
