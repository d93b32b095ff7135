"""Core services exports."""

from .catalog_service import CatalogService, CategoryList, ProductPage
from .database.db_session import DbSessionService, build_engine
from .database.query_counter import QueryCounter, QueryTally
from .redis_service import RedisService

__all__ = [
    "CatalogService",
    "CategoryList",
    "DbSessionService",
    "ProductPage",
    "QueryCounter",
    "QueryTally",
    "RedisService",
    "build_engine",
]
