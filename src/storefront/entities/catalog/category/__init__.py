"""Category entity module."""

from .entity import Category, CategorySummary
from .repository import CategoryRepository
from .table import CategoryTable

__all__ = ["Category", "CategorySummary", "CategoryRepository", "CategoryTable"]
