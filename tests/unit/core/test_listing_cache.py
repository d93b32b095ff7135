"""Tests for listing cache backends and key construction."""

from fnmatch import fnmatchcase
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import BaseModel
from redis.exceptions import ConnectionError as RedisConnectionError

from src.storefront.core.storage import (
    InMemoryListingCache,
    NullListingCache,
    RedisListingCache,
    get_listing_cache,
    make_listing_key,
)
from src.storefront.runtime.config.config_data import CacheConfig


class CachedListing(BaseModel):
    """Stand-in for a cached listing payload."""

    names: list[str]
    total: int


class TestListingKeys:
    def test_key_ignores_parameter_order(self):
        a = make_listing_key("shop", 3, "list", {"page": "2", "sort": "name"})
        b = make_listing_key("shop", 3, "list", {"sort": "name", "page": "2"})
        assert a == b

    def test_key_embeds_prefix_version_and_kind(self):
        key = make_listing_key("shop", 7, "detail", {"product": "x"})
        assert key.startswith("shop:v7:detail:")

    def test_versions_produce_distinct_keys(self):
        params = {"page": "1"}
        assert make_listing_key("shop", 1, "list", params) != make_listing_key(
            "shop", 2, "list", params
        )

    def test_different_parameters_produce_distinct_keys(self):
        assert make_listing_key("shop", 1, "list", {"page": "1"}) != make_listing_key(
            "shop", 1, "list", {"page": "2"}
        )


class TestInMemoryListingCache:
    """In-process backend with per-entry TTL."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, listing_cache: InMemoryListingCache):
        await listing_cache.set("k", CachedListing(names=["a"], total=1), 60)

        cached = await listing_cache.get("k", CachedListing)

        assert cached == CachedListing(names=["a"], total=1)

    @pytest.mark.asyncio
    async def test_miss_returns_none(self, listing_cache: InMemoryListingCache):
        assert await listing_cache.get("missing", CachedListing) is None

    @pytest.mark.asyncio
    async def test_entries_expire_after_ttl(self, listing_cache, clock):
        await listing_cache.set("short", CachedListing(names=[], total=0), 10)
        await listing_cache.set("long", CachedListing(names=[], total=0), 100)

        clock.advance(11)

        assert await listing_cache.get("short", CachedListing) is None
        assert await listing_cache.get("long", CachedListing) is not None

    @pytest.mark.asyncio
    async def test_least_recently_used_entry_is_evicted(self, clock):
        cache = InMemoryListingCache(max_entries=2, timer=clock)
        await cache.set("a", CachedListing(names=["a"], total=1), 60)
        await cache.set("b", CachedListing(names=["b"], total=1), 60)
        await cache.get("a", CachedListing)

        await cache.set("c", CachedListing(names=["c"], total=1), 60)

        assert await cache.get("b", CachedListing) is None
        assert await cache.get("a", CachedListing) is not None
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_values_are_copies(self, listing_cache):
        value = CachedListing(names=["a"], total=1)
        await listing_cache.set("k", value, 60)
        value.names.append("mutated")

        cached = await listing_cache.get("k", CachedListing)

        assert cached.names == ["a"]

    @pytest.mark.asyncio
    async def test_wrong_model_is_treated_as_miss(self, listing_cache):
        class Other(BaseModel):
            required: int

        await listing_cache.set("k", CachedListing(names=[], total=0), 60)

        assert await listing_cache.get("k", Other) is None
        assert await listing_cache.get("k", CachedListing) is None

    @pytest.mark.asyncio
    async def test_version_bumps(self, listing_cache):
        assert await listing_cache.get_version() == 0
        assert await listing_cache.bump_version() == 1
        assert await listing_cache.get_version() == 1

    @pytest.mark.asyncio
    async def test_clear_removes_entries_and_bumps_version(self, listing_cache):
        await listing_cache.set("a", CachedListing(names=[], total=0), 60)
        await listing_cache.set("b", CachedListing(names=[], total=0), 60)

        removed = await listing_cache.clear()

        assert removed == 2
        assert len(listing_cache) == 0
        assert await listing_cache.get_version() == 1

    def test_backend_name(self, listing_cache):
        assert listing_cache.backend == "memory"
        assert listing_cache.is_available()


class TestRedisListingCache:
    """Redis backend, with the client mocked."""

    def setup_method(self):
        self.redis = MagicMock()
        self.redis.get = AsyncMock(return_value=None)
        self.redis.setex = AsyncMock()
        self.redis.delete = AsyncMock(return_value=1)
        self.redis.incr = AsyncMock(return_value=5)
        self.redis.ping = AsyncMock(return_value=True)
        self.cache = RedisListingCache(self.redis, key_prefix="shop")

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self):
        await self.cache.set("shop:v1:list:x", CachedListing(names=["a"], total=1), 30)

        self.redis.setex.assert_awaited_once()
        key, ttl, data = self.redis.setex.await_args.args
        assert key == "shop:v1:list:x"
        assert ttl == 30
        assert CachedListing.model_validate_json(data).names == ["a"]

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self):
        payload = CachedListing(names=["a"], total=1).model_dump_json().encode()
        self.redis.get.return_value = payload

        assert await self.cache.get("k", CachedListing) == CachedListing(
            names=["a"], total=1
        )

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_deleted(self):
        self.redis.get.return_value = "{not json"

        assert await self.cache.get("k", CachedListing) is None
        self.redis.delete.assert_awaited_once_with("k")

    @pytest.mark.asyncio
    async def test_version_uses_shared_counter(self):
        self.redis.get.return_value = "4"

        assert await self.cache.get_version() == 4
        self.redis.get.assert_awaited_with("shop:version")
        assert await self.cache.bump_version() == 5
        self.redis.incr.assert_awaited_once_with("shop:version")

    @pytest.mark.asyncio
    async def test_missing_version_is_zero(self):
        assert await self.cache.get_version() == 0

    @pytest.mark.asyncio
    async def test_redis_errors_degrade_to_misses(self):
        self.redis.get.side_effect = RedisConnectionError("down")
        self.redis.setex.side_effect = RedisConnectionError("down")

        assert await self.cache.get("k", CachedListing) is None
        await self.cache.set("k", CachedListing(names=[], total=0), 30)
        assert await self.cache.get_version() == 0
        assert not self.cache.is_available()

    @pytest.mark.asyncio
    async def test_availability_recovers(self):
        self.redis.get.side_effect = RedisConnectionError("down")
        await self.cache.get("k", CachedListing)
        assert not self.cache.is_available()

        self.redis.get.side_effect = None
        await self.cache.get("k", CachedListing)

        assert self.cache.is_available()

    @pytest.mark.asyncio
    async def test_clear_deletes_versioned_keys(self):
        stored = ["shop:version", "shop:v1:list:a", "shop:v1:list:b", "other:v1:x"]

        async def scan_iter(match: str, count: int):
            for key in stored:
                if fnmatchcase(key, match):
                    yield key

        self.redis.scan_iter = scan_iter
        self.redis.delete.return_value = 2

        removed = await self.cache.clear()

        assert removed == 2
        self.redis.delete.assert_awaited_once_with("shop:v1:list:a", "shop:v1:list:b")
        self.redis.incr.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_clear_keeps_version_counter(self):
        async def scan_iter(match: str, count: int):
            for key in (b"shop:version", b"shop:v5:detail:a"):
                if fnmatchcase(key.decode(), match):
                    yield key

        self.redis.scan_iter = scan_iter
        self.redis.delete.return_value = 1
        self.redis.incr.return_value = 6

        assert await self.cache.clear() == 1
        self.redis.delete.assert_awaited_once_with(b"shop:v5:detail:a")
        self.redis.incr.assert_awaited_once_with("shop:version")

    def test_backend_name(self):
        assert self.cache.backend == "redis"


class TestNullListingCache:
    @pytest.mark.asyncio
    async def test_everything_is_a_miss(self):
        cache = NullListingCache()
        await cache.set("k", CachedListing(names=[], total=0), 60)

        assert await cache.get("k", CachedListing) is None
        assert await cache.bump_version() == 0
        assert cache.backend == "disabled"


class TestGetListingCache:
    """Backend selection."""

    @pytest.mark.asyncio
    async def test_disabled_cache(self):
        cache = await get_listing_cache(CacheConfig(enabled=False))
        assert isinstance(cache, NullListingCache)

    @pytest.mark.asyncio
    async def test_memory_backend(self):
        redis = MagicMock()
        cache = await get_listing_cache(CacheConfig(backend="memory"), redis)
        assert isinstance(cache, InMemoryListingCache)

    @pytest.mark.asyncio
    async def test_auto_prefers_reachable_redis(self):
        redis = MagicMock()
        redis.ping = AsyncMock(return_value=True)

        cache = await get_listing_cache(CacheConfig(backend="auto"), redis)

        assert isinstance(cache, RedisListingCache)

    @pytest.mark.asyncio
    async def test_auto_falls_back_when_redis_is_down(self):
        redis = MagicMock()
        redis.ping = AsyncMock(side_effect=RedisConnectionError("down"))

        cache = await get_listing_cache(CacheConfig(backend="auto"), redis)

        assert isinstance(cache, InMemoryListingCache)

    @pytest.mark.asyncio
    async def test_auto_without_client_uses_memory(self):
        cache = await get_listing_cache(CacheConfig(backend="auto"))
        assert isinstance(cache, InMemoryListingCache)

    @pytest.mark.asyncio
    async def test_required_redis_without_client_fails(self):
        with pytest.raises(RuntimeError):
            await get_listing_cache(CacheConfig(backend="redis"))
