"""Listing cache interface and implementations.

Listings are cached under keys that embed a catalog *version*. Writes bump
the version instead of hunting down affected keys; stale entries are never
read again and age out through their TTL (Redis) or LRU eviction (memory).

Redis is preferred so that all server workers share one cache and one
version counter; the in-memory backend is per process.
"""

from __future__ import annotations

import hashlib
import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, NamedTuple, TypeVar

from cachetools import TLRUCache
from loguru import logger
from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from src.storefront.runtime.config.config_data import CacheConfig

T = TypeVar("T", bound=BaseModel)


def make_listing_key(
    prefix: str, version: int, kind: str, params: Mapping[str, Any]
) -> str:
    """Stable cache key for ``params`` regardless of their order."""
    payload = json.dumps(
        {str(k): params[k] for k in sorted(params)}, separators=(",", ":"), default=str
    )
    digest = hashlib.sha1(payload.encode("utf-8")).hexdigest()
    return f"{prefix}:v{version}:{kind}:{digest}"


class ListingCache(ABC):
    """Abstract interface for listing cache backends."""

    @abstractmethod
    async def get(self, key: str, model_class: type[T]) -> T | None:
        """Return the cached value or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Store a value for ``ttl_seconds``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def get_version(self) -> int:
        """Current catalog version embedded in listing keys."""

    @abstractmethod
    async def bump_version(self) -> int:
        """Invalidate every listing by moving to a new version."""

    @abstractmethod
    async def clear(self) -> int:
        """Drop cached entries; returns how many were removed."""

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @property
    def backend(self) -> str:
        return type(self).__name__


class _Entry(NamedTuple):
    data: str
    ttl: float


def _entry_expiry(_key: str, value: _Entry, now: float) -> float:
    return now + value.ttl


class InMemoryListingCache(ListingCache):
    """Per-process cache with LRU eviction and per-entry expiry."""

    def __init__(
        self, max_entries: int = 1024, timer: Callable[[], float] = time.monotonic
    ) -> None:
        self._data: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_entries, ttu=_entry_expiry, timer=timer
        )
        self._version = 0

    async def get(self, key: str, model_class: type[T]) -> T | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        try:
            return model_class.model_validate_json(entry.data)
        except ValidationError:
            self._data.pop(key, None)
            return None

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        self._data[key] = _Entry(value.model_dump_json(), float(ttl_seconds))

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_version(self) -> int:
        return self._version

    async def bump_version(self) -> int:
        self._version += 1
        return self._version

    async def clear(self) -> int:
        removed = len(self._data)
        self._data.clear()
        await self.bump_version()
        return removed

    def is_available(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._data)

    @property
    def backend(self) -> str:
        return "memory"


class RedisListingCache(ListingCache):
    """Shared cache on Redis.

    Redis failures never fail a request: reads degrade to misses and writes
    to no-ops, and the backend reports itself unavailable until a command
    succeeds again.
    """

    def __init__(self, redis_client, key_prefix: str = "storefront") -> None:
        self._redis = redis_client
        self._prefix = key_prefix
        self._version_key = f"{key_prefix}:version"
        self._available = True

    def _failed(self, operation: str, error: Exception) -> None:
        self._available = False
        logger.warning(
            "Listing cache {} failed; serving from database",
            operation,
            error_type=type(error).__name__,
            error_message=str(error),
        )

    async def get(self, key: str, model_class: type[T]) -> T | None:
        try:
            data = await self._redis.get(key)
            self._available = True
        except (RedisError, OSError) as e:
            self._failed("get", e)
            return None
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return model_class.model_validate_json(data)
        except ValidationError:
            await self.delete(key)
            return None

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(key, ttl_seconds, value.model_dump_json())
            self._available = True
        except (RedisError, OSError) as e:
            self._failed("set", e)

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except (RedisError, OSError) as e:
            self._failed("delete", e)

    async def get_version(self) -> int:
        try:
            value = await self._redis.get(self._version_key)
        except (RedisError, OSError) as e:
            self._failed("version read", e)
            return 0
        return int(value) if value is not None else 0

    async def bump_version(self) -> int:
        try:
            return int(await self._redis.incr(self._version_key))
        except (RedisError, OSError) as e:
            self._failed("version bump", e)
            return 0

    async def clear(self) -> int:
        removed = 0
        try:
            batch: list[Any] = []
            async for key in self._redis.scan_iter(
                match=f"{self._prefix}:v[0-9]*", count=500
            ):
                if key in (self._version_key, self._version_key.encode()):
                    continue
                batch.append(key)
                if len(batch) >= 500:
                    removed += await self._redis.delete(*batch)
                    batch = []
            if batch:
                removed += await self._redis.delete(*batch)
        except (RedisError, OSError) as e:
            self._failed("clear", e)
        await self.bump_version()
        return removed

    def is_available(self) -> bool:
        return self._available

    async def ping(self) -> bool:
        try:
            await self._redis.ping()
            self._available = True
            return True
        except (RedisError, OSError):
            self._available = False
            return False

    @property
    def backend(self) -> str:
        return "redis"


class NullListingCache(ListingCache):
    """Used when caching is disabled: every read is a miss."""

    async def get(self, key: str, model_class: type[T]) -> T | None:
        return None

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None

    async def get_version(self) -> int:
        return 0

    async def bump_version(self) -> int:
        return 0

    async def clear(self) -> int:
        return 0

    def is_available(self) -> bool:
        return True

    @property
    def backend(self) -> str:
        return "disabled"


async def get_listing_cache(cache_config: CacheConfig, redis_client=None) -> ListingCache:
    """Build the cache backend selected by configuration.

    ``auto`` uses Redis when a client is given and answers PING, and falls
    back to process memory otherwise.
    """
    if not cache_config.enabled:
        logger.info("Listing cache disabled")
        return NullListingCache()

    if cache_config.backend == "memory":
        return InMemoryListingCache(cache_config.max_entries)

    if redis_client is not None:
        redis_cache = RedisListingCache(redis_client, cache_config.key_prefix)
        if cache_config.backend == "redis" or await redis_cache.ping():
            logger.info("Listing cache: Redis")
            return redis_cache

    if cache_config.backend == "redis":
        raise RuntimeError("Cache backend 'redis' requires a configured Redis URL")

    logger.warning("Redis unavailable, using in-memory listing cache")
    return InMemoryListingCache(cache_config.max_entries)
