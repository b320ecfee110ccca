"""
Cache service for the Market Cache Layer.

Read-only HTTP surface over the market and news caches plus cache
diagnostics. Invalidation is driven in-process through
``CacheInvalidationService`` and is not exposed over HTTP.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import Query

from shared.base_service import BaseService
from shared.errors import CacheLayerException, ProviderError, StoreError

from .caching import CacheService, MarketCacheService, NewsCacheService, RedisStore
from .caching.news_cache import ALL_CATEGORIES
from .invalidation import CacheInvalidationService
from .providers import MarketApiService, NewsApiService


class CacheApiService(BaseService):
    """Cache service implementation."""

    def __init__(self, **config_overrides):
        super().__init__("cache", 8020, **config_overrides)

        self.store = RedisStore(
            self.config.redis_url,
            socket_timeout=self.config.redis_socket_timeout,
            socket_connect_timeout=self.config.redis_connect_timeout,
        )
        self.cache_service = CacheService(
            self.store,
            collector=self.metrics,
            default_ttl=self.config.cache_default_ttl,
        )
        self.market_cache = MarketCacheService(self.cache_service)
        self.news_cache = NewsCacheService(self.cache_service)
        self.invalidation_service = CacheInvalidationService(
            self.cache_service,
            self.market_cache,
            self.news_cache,
            collector=self.metrics,
        )

        latency = self.config.provider_latency_ms / 1000
        self.market_api = MarketApiService(self.market_cache, latency_seconds=latency)
        self.news_api = NewsApiService(self.news_cache, latency_seconds=latency)

        @self.app.on_event("startup")
        async def _startup():
            await self.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.stop()

        self._setup_cache_routes()

    def _setup_cache_routes(self):
        """Set up cache-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "cache",
                "message": "Market Cache Layer - Cache Service",
                "version": "1.0.0",
                "capabilities": ["market_data", "news", "metrics"]
            }

        @self.app.get("/api/cache/market/{asset_id}")
        async def get_market_snapshot(asset_id: str) -> Dict[str, Any]:
            """Market snapshot, served from cache when warm."""
            return await self._call_provider("market", self.market_api.get_market_snapshot(asset_id))

        @self.app.get("/api/cache/market/{asset_id}/extended")
        async def get_extended_market_data(asset_id: str) -> Dict[str, Any]:
            """Extended market data with technical indicators."""
            return await self._call_provider("market", self.market_api.get_extended_market_data(asset_id))

        @self.app.get("/api/cache/news")
        async def get_news(category: str = Query(default=ALL_CATEGORIES)) -> List[Dict[str, Any]]:
            """News articles, optionally filtered by category."""
            return await self._call_provider("news", self.news_api.get_news(category))

        @self.app.get("/api/cache/news/trending")
        async def get_trending_news() -> List[Dict[str, Any]]:
            return await self._call_provider("news", self.news_api.get_trending_news())

        @self.app.get("/api/cache/metrics")
        async def get_cache_metrics():
            """Hit/miss statistics per cache bucket."""
            return self.cache_service.get_metrics()

        @self.app.get("/api/cache/info")
        async def get_cache_info():
            """Redis server info, cache metrics and TTL configuration."""
            return {
                "redis": await self.cache_service.get_redis_info(),
                "metrics": self.cache_service.get_metrics(),
                "config": self.cache_service.get_config_summary(),
                "handlers": self.invalidation_service.handler_counts(),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

    async def start(self):
        """Start cache service components."""
        try:
            await self.store.start()
        except StoreError as e:
            # Reads degrade to provider calls until Redis comes back
            self.logger.warning("Starting without Redis", error=e.message)
        self.logger.info("Cache service started")

    async def stop(self):
        """Stop cache service components."""
        await self.store.stop()
        self.logger.info("Cache service stopped")

    async def _call_provider(self, provider: str, call):
        try:
            return await call
        except CacheLayerException:
            raise
        except Exception as e:
            self.logger.error("Provider call failed", provider=provider, error=str(e))
            raise ProviderError(provider, str(e))

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check cache service dependencies."""
        return {"redis": "ok" if await self.store.health_check() else "error"}


def create_app(**config_overrides):
    """Create cache service application."""
    service = CacheApiService(**config_overrides)
    service.app.state.cache_api_service = service
    return service.app


if __name__ == "__main__":
    service = CacheApiService()
    service.run()
