"""Redis client lifecycle for the shared listing cache."""

from loguru import logger
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from src.storefront.runtime.config.config_data import RedisConfig


class RedisService:
    """Owns the process-wide async Redis client.

    The client is optional: with Redis disabled or unconfigured the service
    reports itself disabled and the cache falls back to process memory.
    """

    def __init__(self, redis_config: RedisConfig, environment: str = "development"):
        self._enabled = redis_config.enabled and bool(redis_config.url)
        self._client = None

        if not redis_config.enabled:
            logger.info("Redis is disabled, service will not connect")
            return
        if not redis_config.url:
            logger.info("Redis URL not configured, service will not connect")
            return

        import redis.asyncio as redis_async

        try:
            logger.info(
                "Initializing Redis client with connection string: {}",
                redis_config.sanitized_connection_string,
            )
            self._client = redis_async.from_url(
                redis_config.connection_string,
                encoding="utf-8",
                decode_responses=redis_config.decode_responses,
                max_connections=redis_config.max_connections,
                socket_timeout=redis_config.socket_timeout,
                socket_connect_timeout=redis_config.socket_connect_timeout,
                health_check_interval=30,
                retry=Retry(ExponentialBackoff(base=0.1, cap=2), retries=3),
                client_name="storefront",
            )
        except (RedisError, ValueError) as e:
            logger.error(
                "Failed to initialize Redis client",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            self._enabled = False
            self._client = None
            if environment == "production":
                raise

    def get_client(self):
        """Return the async client, or None when Redis is not in use."""
        if not self._enabled:
            return None
        return self._client

    async def health_check(self) -> bool:
        """PING the server; False when disabled or unreachable."""
        if not self._enabled or self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.warning(
                "Redis health check failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is None:
            return
        try:
            logger.info("Closing Redis connection")
            await self._client.aclose()
        except (RedisError, OSError) as e:
            logger.error(
                "Error closing Redis connection",
                error_type=type(e).__name__,
                error_message=str(e),
            )
        finally:
            self._client = None

    @property
    def is_enabled(self) -> bool:
        return self._enabled
