from .listing_cache import (
    InMemoryListingCache,
    ListingCache,
    NullListingCache,
    RedisListingCache,
    get_listing_cache,
    make_listing_key,
)

__all__ = [
    "InMemoryListingCache",
    "ListingCache",
    "NullListingCache",
    "RedisListingCache",
    "get_listing_cache",
    "make_listing_key",
]
