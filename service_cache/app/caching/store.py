"""
Redis-backed key-value store adapter.

The cache service only talks to the store through this class. Every Redis
failure surfaces as ``StoreError`` so callers deal with a single error type.
"""

from typing import List, Optional, Sequence

import redis.asyncio as redis

from shared.errors import StoreError
from shared.logging import get_logger


class RedisStore:
    """Thin async adapter over a Redis client."""

    def __init__(
        self,
        redis_url: str,
        *,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.socket_connect_timeout = socket_connect_timeout
        self.logger = get_logger("cache.store.redis")
        self._redis: Optional[redis.Redis] = client

    @property
    def client(self) -> redis.Redis:
        """Redis connection, created on first use."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_connect_timeout,
                socket_timeout=self.socket_timeout,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        return self._redis

    async def start(self):
        """Connect and verify the store is reachable."""
        try:
            await self.client.ping()
            self.logger.info("Redis store started", redis_url=self.redis_url)
        except redis.RedisError as e:
            self.logger.error("Failed to start Redis store", error=str(e))
            raise StoreError("start", str(e))

    async def stop(self):
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis store stopped")

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self.client.ping()
            return True
        except redis.RedisError:
            return False

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except redis.RedisError as e:
            raise StoreError("get", str(e), {"key": key})

    async def set(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except redis.RedisError as e:
            raise StoreError("set", str(e), {"key": key})

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.client.setex(key, ttl_seconds, value)
        except redis.RedisError as e:
            raise StoreError("set_with_expiry", str(e), {"key": key, "ttl": ttl_seconds})

    async def delete(self, key: str) -> int:
        try:
            return await self.client.delete(key)
        except redis.RedisError as e:
            raise StoreError("delete", str(e), {"key": key})

    async def delete_many(self, keys: Sequence[str]) -> int:
        """Delete a batch of keys in one round trip; returns the number removed."""
        if not keys:
            return 0
        try:
            return await self.client.delete(*keys)
        except redis.RedisError as e:
            raise StoreError("delete_many", str(e), {"count": len(keys)})

    async def keys_matching(self, pattern: str) -> List[str]:
        """List keys matching a glob-style pattern."""
        try:
            return list(await self.client.keys(pattern))
        except redis.RedisError as e:
            raise StoreError("keys_matching", str(e), {"pattern": pattern})

    async def server_info(self) -> str:
        """Render ``INFO`` as ``field:value`` lines, the way redis-cli prints it."""
        try:
            info = await self.client.info()
        except redis.RedisError as e:
            raise StoreError("server_info", str(e))
        if isinstance(info, dict):
            return "\r\n".join(f"{field}:{value}" for field, value in info.items())
        return str(info)
