from typing import Awaitable, Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.exceptions import CacheError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class SequenceAllocator:
    """Hands out increasing integers from Redis counters.

    A counter that does not exist yet is seeded from ``floor_loader`` (the
    largest value already used in the store) before its first increment,
    so allocation continues after data loaded by other means.
    """

    def __init__(self, redis: Redis, prefix: str = "sequence"):
        self.redis = redis
        self.prefix = prefix

    async def next_value(self, name: str, floor_loader: Callable[[], Awaitable[int]]) -> int:
        """Allocate the next value of the ``name`` counter."""
        key = f"{self.prefix}:{name}"
        try:
            if not await self.redis.exists(key):
                floor = await floor_loader()
                # Another request may have seeded it meanwhile; keep theirs.
                await self.redis.set(key, floor, nx=True)
                LOGGER.info("Sequence seeded", extra={"sequence": name, "floor": floor})
            value = await self.redis.incr(key)
        except RedisError as e:
            LOGGER.error("Sequence allocation failed", exc_info=True, extra={"sequence": name})
            raise CacheError(f"Could not allocate a {name} id", original_error=e)
        return int(value)
