from dataclasses import dataclass

from src.storefront.core.assets import AssetUrls
from src.storefront.core.services import (
    CatalogService,
    DbSessionService,
    QueryCounter,
    RedisService,
)
from src.storefront.core.storage import ListingCache


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    query_counter: QueryCounter
    redis_service: RedisService
    listing_cache: ListingCache
    catalog_service: CatalogService
    asset_urls: AssetUrls
