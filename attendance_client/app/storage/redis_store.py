"""
Redis-backed key-value store.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import StorageError
from shared.logging import get_logger

from .base import KeyValueStore


class RedisStore(KeyValueStore):
    """Key-value store on Redis, for clients that share a cache."""

    def __init__(self, redis_url: str, namespace: str = "attendance:"):
        self.redis_url = redis_url
        self.namespace = namespace
        self.logger = get_logger("attendance.storage.redis")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get_item(self, key: str) -> Optional[str]:
        try:
            redis_client = await self._get_redis()
            value = await redis_client.get(self._make_key(key))
        except RedisError as e:
            self.logger.error("Redis get error", key=key, error=str(e))
            raise StorageError("Redis read failed", details={"key": key, "error": str(e)}) from e

        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set_item(self, key: str, value: str) -> None:
        try:
            redis_client = await self._get_redis()
            await redis_client.set(self._make_key(key), value)
        except RedisError as e:
            self.logger.error("Redis set error", key=key, error=str(e))
            raise StorageError("Redis write failed", details={"key": key, "error": str(e)}) from e

    async def remove_item(self, key: str) -> None:
        try:
            redis_client = await self._get_redis()
            await redis_client.delete(self._make_key(key))
        except RedisError as e:
            self.logger.error("Redis delete error", key=key, error=str(e))
            raise StorageError("Redis delete failed", details={"key": key, "error": str(e)}) from e

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            redis_client = await self._get_redis()
            await redis_client.ping()
            return True
        except RedisError:
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis store closed")
