"""
Redis Store
===========
Networked store for production, shared by every service instance.
"""

from typing import Optional
import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..exceptions import StoreUnavailableError
from .base import KeyValueStore

logger = structlog.get_logger(__name__)


class RedisStore(KeyValueStore):
    """
    Redis-backed expiring store.

    Expiry is enforced by Redis itself (PX on SET). Redis errors surface as
    StoreUnavailableError; there is no fallback.
    """

    backend = "redis"

    def __init__(self, redis: Redis):
        """
        Args:
            redis: Async Redis client
        """
        self.redis = redis

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisStore":
        return cls(Redis.from_url(redis_url, decode_responses=False))

    async def get(self, key: str) -> Optional[bytes]:
        try:
            value = await self.redis.get(key)
        except RedisError as e:
            logger.error("Redis get failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), operation="get") from e
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set_with_expiry(self, key: str, value: bytes, ttl_ms: int) -> None:
        try:
            await self.redis.set(key, value, px=ttl_ms)
        except RedisError as e:
            logger.error("Redis set failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), operation="set") from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            logger.error("Redis delete failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), operation="delete") from e

    async def remaining_ttl(self, key: str) -> Optional[int]:
        try:
            ttl = await self.redis.pttl(key)
        except RedisError as e:
            logger.error("Redis pttl failed", key=key, error=str(e))
            raise StoreUnavailableError(str(e), operation="pttl") from e
        # -2: no such key, -1: key without expiry
        if ttl is None or ttl < 0:
            return None
        return int(ttl)

    async def ping(self) -> None:
        try:
            await self.redis.ping()
        except RedisError as e:
            raise StoreUnavailableError(str(e), operation="ping") from e

    async def close(self) -> None:
        await self.redis.aclose()
