"""Product entity module."""

from .entity import (
    Product,
    ProductDetail,
    ProductFilters,
    ProductImage,
    ProductSort,
    ProductSummary,
)
from .repository import (
    DuplicateSlugError,
    ProductNotFound,
    ProductRepository,
    UnknownCategoryError,
)
from .table import ProductImageTable, ProductTable

__all__ = [
    "DuplicateSlugError",
    "Product",
    "ProductDetail",
    "ProductFilters",
    "ProductImage",
    "ProductImageTable",
    "ProductNotFound",
    "ProductRepository",
    "ProductSort",
    "ProductSummary",
    "ProductTable",
    "UnknownCategoryError",
]
