"""Redis client configuration and connection management."""

from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class RedisClientManager:
    """Manages the shared Redis client used by the ranking cache and sequences."""

    _client: Optional[Redis] = None

    @classmethod
    def get_client(cls) -> Redis:
        """Get or create the Redis client."""
        if cls._client is None:
            cls._client = Redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_timeout=settings.redis.socket_timeout,
            )
            LOGGER.info("Redis client initialized", extra={"url": settings.redis_url})
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the Redis client."""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None
            LOGGER.info("Redis client closed")

    @classmethod
    async def health_check(cls) -> dict:
        """Check Redis health."""
        try:
            await cls.get_client().ping()
            return {"status": "healthy", "connected": True}
        except RedisError as e:
            LOGGER.error("Redis health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "connected": False, "error": str(e)}


async def get_redis() -> Redis:
    """FastAPI dependency returning the shared Redis client."""
    return RedisClientManager.get_client()


async def init_redis() -> None:
    """Verify Redis is reachable on startup."""
    try:
        await RedisClientManager.get_client().ping()
        LOGGER.info("Redis connection successful")
    except RedisError as e:
        LOGGER.error("Redis connection failed", exc_info=True, extra={"error": str(e)})
        raise


async def close_redis() -> None:
    try:
        await RedisClientManager.close()
    except RedisError as e:
        LOGGER.error("Error closing Redis", exc_info=True, extra={"error": str(e)})
