"""
Cache service: cache-aside access to the key-value store with hit/miss metrics.
"""

import json
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar, TYPE_CHECKING

from shared.logging import get_logger

from .config import CACHE_CONFIG, CacheConfigEntry, DEFAULT_TTL, config_summary, resolve_ttl
from .metrics import CacheMetrics
from .store import RedisStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


T = TypeVar("T")
Provider = Callable[[], Awaitable[T]]

REDIS_INFO_UNAVAILABLE = "Unable to fetch Redis info"


class CacheService:
    """
    Redis-backed cache with TTL resolution and per-bucket metrics.

    Store and serialization failures never reach callers: reads degrade to a
    miss, writes and deletes become no-ops. The only error that propagates is
    a failing provider inside ``get_or_set``.
    """

    def __init__(
        self,
        store: RedisStore,
        *,
        metrics: Optional[CacheMetrics] = None,
        collector: Optional["MetricsCollector"] = None,
        registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG,
        default_ttl: int = DEFAULT_TTL,
    ):
        self.store = store
        self.registry = registry
        self.default_ttl = default_ttl
        self.collector = collector
        self.metrics = metrics if metrics is not None else CacheMetrics(registry, collector=collector)
        self.logger = get_logger("cache.service")

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or any store failure."""
        try:
            raw = await self.store.get(key)
            if raw is None:
                self.metrics.record_miss(key)
                return None

            value = json.loads(raw)
            self.metrics.record_hit(key)
            return value

        except Exception as e:
            self.logger.error("Cache get error", key=key, error=str(e))
            self.metrics.record_miss(key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Store a value; an explicit ttl wins over the registry, 0 means no expiry."""
        try:
            ttl = ttl_seconds if ttl_seconds is not None else self.get_ttl_for_key(key)
            serialized = json.dumps(value)

            if ttl > 0:
                await self.store.set_with_expiry(key, serialized, ttl)
                self.logger.debug("Cached key", key=key, ttl=ttl)
            else:
                await self.store.set(key, serialized)
                self.logger.debug("Cached key without expiration", key=key)

        except Exception as e:
            self.logger.error("Cache set error", key=key, error=str(e))

    async def get_or_set(
        self,
        key: str,
        provider: Provider,
        ttl_seconds: Optional[int] = None,
    ) -> Any:
        """
        Serve from cache, otherwise call the provider and cache its result.

        Concurrent misses for the same key each call the provider and each
        write the result; there is no single-flight de-duplication. Provider
        failures are re-raised and nothing is cached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        start = time.perf_counter()
        try:
            data = await provider()
        except Exception as e:
            self.logger.error("Cache provider error", key=key, error=str(e))
            raise
        finally:
            if self.collector:
                self.collector.observe_histogram(
                    "provider_duration_seconds",
                    time.perf_counter() - start,
                    bucket=self.metrics.bucket_for(key),
                )

        await self.set(key, data, ttl_seconds)
        return data

    async def delete(self, key: str) -> None:
        """Best-effort single-key delete."""
        try:
            await self.store.delete(key)
            self.logger.debug("Deleted cache key", key=key)
        except Exception as e:
            self.logger.error("Cache delete error", key=key, error=str(e))

    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern in one batch; returns the count."""
        try:
            keys = await self.store.keys_matching(pattern)
            if not keys:
                return 0

            deleted = await self.store.delete_many(keys)
            self.logger.debug("Deleted cache keys by pattern", pattern=pattern, count=deleted)
            return deleted

        except Exception as e:
            self.logger.error("Cache pattern delete error", pattern=pattern, error=str(e))
            return 0

    async def invalidate_entity_cache(self, entity_type: str, entity_id: Optional[str] = None) -> int:
        """Drop every cached entry that mentions an entity, across namespaces."""
        if entity_id:
            pattern = f"cache:*:{entity_type}:{entity_id}:*"
        else:
            pattern = f"cache:*:{entity_type}:*"

        deleted = await self.delete_by_pattern(pattern)
        self.logger.info(
            "Invalidated entity cache",
            entity_type=entity_type,
            entity_id=entity_id,
            count=deleted,
        )
        return deleted

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        return self.metrics.snapshot()

    def clear_metrics(self) -> None:
        self.metrics.reset()
        self.logger.debug("Cache metrics cleared")

    async def get_redis_info(self) -> str:
        try:
            return await self.store.server_info()
        except Exception as e:
            self.logger.error("Error fetching Redis info", error=str(e))
            return REDIS_INFO_UNAVAILABLE

    def get_ttl_for_key(self, key: str) -> int:
        return resolve_ttl(key, self.registry, self.default_ttl)

    def get_config_summary(self) -> Dict[str, Dict[str, Any]]:
        return config_summary(self.registry)
