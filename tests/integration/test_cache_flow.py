"""
Integration tests for the cache and invalidation flow.

Runs the real cache, facade, invalidation and provider layers over an
in-memory store that mirrors the RedisStore surface.
"""

import fnmatch
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from service_cache.app.caching import CacheService, MarketCacheService, NewsCacheService
from service_cache.app.invalidation import CacheInvalidationService
from service_cache.app.main import create_app
from service_cache.app.providers import MarketApiService, NewsApiService
from shared.errors import StoreError


class InMemoryStore:
    """Dictionary-backed stand-in for RedisStore."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False

    def _check(self, operation: str):
        if self.fail:
            raise StoreError(operation, "connection refused")

    async def health_check(self) -> bool:
        return not self.fail

    async def stop(self):
        pass

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check("set")
        self.data[key] = value
        self.ttls.pop(key, None)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self._check("setex")
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> int:
        self._check("delete")
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def delete_many(self, keys: Sequence[str]) -> int:
        self._check("delete")
        return sum([await self.delete(key) for key in keys])

    async def keys_matching(self, pattern: str) -> List[str]:
        self._check("keys")
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    async def server_info(self) -> str:
        self._check("info")
        return f"redis_version:7.2.0\r\ndb0:keys={len(self.data)}"


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def cache_service(store):
    return CacheService(store)


@pytest.fixture
def market_cache(cache_service):
    return MarketCacheService(cache_service)


@pytest.fixture
def news_cache(cache_service):
    return NewsCacheService(cache_service)


@pytest.fixture
def market_api(market_cache):
    return MarketApiService(market_cache, latency_seconds=0)


@pytest.fixture
def news_api(news_cache):
    return NewsApiService(news_cache, latency_seconds=0)


@pytest.fixture
def invalidation(cache_service, market_cache, news_cache):
    return CacheInvalidationService(cache_service, market_cache, news_cache)


class TestMarketCacheFlow:
    """Cache-aside reads and asset update invalidation."""

    @pytest.mark.asyncio
    async def test_warm_hit_invalidate_refetch(self, market_api, invalidation, cache_service, store):
        first = await market_api.get_market_snapshot("USD-STELLARA")
        assert store.ttls["cache:market:snapshot:USD-STELLARA"] == 60

        second = await market_api.get_market_snapshot("USD-STELLARA")
        assert second == first

        await invalidation.emit_asset_updated("USD-STELLARA", "price")
        assert "cache:market:snapshot:USD-STELLARA" not in store.data

        await market_api.get_market_snapshot("USD-STELLARA")
        assert "cache:market:snapshot:USD-STELLARA" in store.data

        market_metrics = cache_service.get_metrics()["cache:market"]
        assert market_metrics["hits"] == 1
        assert market_metrics["misses"] == 2
        assert market_metrics["total_requests"] == 3
        assert market_metrics["hit_rate"] == pytest.approx(100 / 3)

    @pytest.mark.asyncio
    async def test_metadata_update_keeps_snapshot(self, market_api, invalidation, store):
        await market_api.get_market_snapshot("USD-STELLARA")
        await market_api.get_extended_market_data("USD-STELLARA")
        assert store.ttls["cache:market:snapshot:extended:USD-STELLARA"] == 300

        await invalidation.emit_asset_updated("USD-STELLARA", "metadata")

        assert "cache:market:snapshot:USD-STELLARA" in store.data
        assert "cache:market:snapshot:extended:USD-STELLARA" not in store.data

    @pytest.mark.asyncio
    async def test_all_update_clears_both_entries(self, market_api, invalidation, store):
        await market_api.get_market_snapshot("USD-STELLARA")
        await market_api.get_extended_market_data("USD-STELLARA")
        await market_api.get_market_snapshot("EUR-STELLARA")

        await invalidation.emit_asset_updated("USD-STELLARA")

        assert list(store.data) == ["cache:market:snapshot:EUR-STELLARA"]

    @pytest.mark.asyncio
    async def test_store_outage_degrades_to_provider(self, market_api, cache_service, store):
        store.fail = True

        result = await market_api.get_market_snapshot("USD-STELLARA")

        assert result["asset_id"] == "USD-STELLARA"
        assert store.data == {}
        assert cache_service.get_metrics()["cache:market"]["misses"] == 1
        assert await cache_service.get_redis_info() == "Unable to fetch Redis info"


class TestNewsCacheFlow:
    """News caching and news update invalidation."""

    @pytest.mark.asyncio
    async def test_category_update_only_drops_that_category(self, news_api, invalidation, store):
        await news_api.get_news("defi")
        await news_api.get_news("blockchain")
        await news_api.get_trending_news()

        await invalidation.emit_news_updated("defi")

        assert sorted(store.data) == ["cache:news:blockchain", "cache:news:trending"]

    @pytest.mark.asyncio
    async def test_trending_update(self, news_api, invalidation, store):
        await news_api.get_news("defi")
        await news_api.get_trending_news()

        await invalidation.emit_news_updated("defi", is_trending=True)

        assert store.data == {}

    @pytest.mark.asyncio
    async def test_uncategorized_update_drops_all_news(self, news_api, invalidation, store):
        await news_api.get_news()
        await news_api.get_news("defi")
        await news_api.get_trending_news()

        await invalidation.emit_news_updated()

        assert store.data == {}


class TestAdministrativeFlow:
    """Bulk clearing and entity invalidation."""

    @pytest.mark.asyncio
    async def test_clear_all_caches(self, market_api, news_api, invalidation, cache_service, store):
        await market_api.get_market_snapshot("USD-STELLARA")
        await market_api.get_extended_market_data("USD-STELLARA")
        await news_api.get_news("defi")
        await cache_service.set("cache:metrics:latency", {"p99": 12}, 0)
        await cache_service.set("session:abc", {"user": "u1"})

        total = await invalidation.clear_all_caches()

        assert total == 4
        assert list(store.data) == ["session:abc"]
        assert store.ttls["session:abc"] == 300

    @pytest.mark.asyncio
    async def test_invalidate_entity_cache(self, cache_service, store):
        await cache_service.set("cache:portfolio:asset:USD-STELLARA:summary", {"v": 1})
        await cache_service.set("cache:risk:asset:USD-STELLARA:var", {"v": 2})
        await cache_service.set("cache:risk:asset:EUR-STELLARA:var", {"v": 3})

        assert await cache_service.invalidate_entity_cache("asset", "USD-STELLARA") == 2
        assert list(store.data) == ["cache:risk:asset:EUR-STELLARA:var"]

        assert await cache_service.invalidate_entity_cache("asset") == 1
        assert store.data == {}


class TestHttpFlow:
    """Endpoints served through the application over the in-memory store."""

    @pytest.fixture
    def client(self, store):
        app = create_app(provider_latency_ms=0)
        service = app.state.cache_api_service
        service.store = store
        service.cache_service.store = store
        return TestClient(app)

    def test_snapshot_is_cached_between_requests(self, client):
        first = client.get("/api/cache/market/USD-STELLARA").json()
        second = client.get("/api/cache/market/USD-STELLARA").json()

        assert first == second

        metrics = client.get("/api/cache/metrics").json()
        assert metrics["cache:market"]["hits"] == 1
        assert metrics["cache:market"]["misses"] == 1

    def test_info_reports_store_state(self, client):
        client.get("/api/cache/news?category=defi")

        info = client.get("/api/cache/info").json()

        assert info["redis"] == "redis_version:7.2.0\r\ndb0:keys=1"
        assert info["metrics"]["cache:news"]["misses"] == 1

    def test_health_follows_store(self, client, store):
        assert client.get("/health").json()["status"] == "ok"

        store.fail = True

        assert client.get("/health").json()["status"] == "degraded"
