"""
Tests for the cache service HTTP endpoints.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from service_cache.app.main import CacheApiService, create_app
from shared.errors import StoreError


@pytest.fixture
def client():
    app = create_app(provider_latency_ms=0)
    return TestClient(app)


@pytest.fixture
def service(client) -> CacheApiService:
    return client.app.state.cache_api_service


def test_root_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "cache"


def test_health_reports_redis_dependency(client, service):
    service.store.health_check = AsyncMock(return_value=False)

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["dependencies"]["redis"] == "error"


def test_health_ok(client, service):
    service.store.health_check = AsyncMock(return_value=True)

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["dependencies"] == {"redis": "ok"}


def test_market_snapshot_passthrough(client, service):
    snapshot = {"asset_id": "USD-STELLARA", "price": 105.5}
    service.market_api.get_market_snapshot = AsyncMock(return_value=snapshot)

    response = client.get("/api/cache/market/USD-STELLARA")

    assert response.status_code == 200
    assert response.json() == snapshot
    service.market_api.get_market_snapshot.assert_awaited_once_with("USD-STELLARA")


def test_extended_market_data_passthrough(client, service):
    service.market_api.get_extended_market_data = AsyncMock(return_value={"asset_id": "USD-STELLARA", "rsi": 55.0})

    response = client.get("/api/cache/market/USD-STELLARA/extended")

    assert response.status_code == 200
    assert response.json()["rsi"] == 55.0


def test_news_defaults_to_all(client, service):
    service.news_api.get_news = AsyncMock(return_value=[])

    response = client.get("/api/cache/news")

    assert response.status_code == 200
    service.news_api.get_news.assert_awaited_once_with("all")


def test_news_category(client, service):
    service.news_api.get_news = AsyncMock(return_value=[{"id": "defi-1"}])

    response = client.get("/api/cache/news?category=defi")

    assert response.json() == [{"id": "defi-1"}]
    service.news_api.get_news.assert_awaited_once_with("defi")


def test_trending_news(client, service):
    service.news_api.get_trending_news = AsyncMock(return_value=[{"id": "trending-1"}])

    response = client.get("/api/cache/news/trending")

    assert response.status_code == 200
    assert response.json()[0]["id"] == "trending-1"


def test_provider_failure_returns_bad_gateway(client, service):
    service.market_api.get_market_snapshot = AsyncMock(side_effect=RuntimeError("upstream down"))

    response = client.get("/api/cache/market/USD-STELLARA")

    assert response.status_code == 502
    body = response.json()
    assert body["code"] == "PROVIDER_ERROR"
    assert "upstream down" in body["message"]


def test_invalid_asset_returns_bad_request(client):
    response = client.get("/api/cache/market/bad:asset")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_cache_metrics(client):
    response = client.get("/api/cache/metrics")

    assert response.status_code == 200
    body = response.json()
    assert body["cache:market"] == {"hits": 0, "misses": 0, "hit_rate": 0.0, "total_requests": 0}
    assert "cache:news" in body


def test_cache_info(client, service):
    service.cache_service.get_redis_info = AsyncMock(return_value="redis_version:7.2.0")

    response = client.get("/api/cache/info")

    assert response.status_code == 200
    body = response.json()
    assert body["redis"] == "redis_version:7.2.0"
    assert body["config"]["market_snapshot"]["ttl"] == 60
    assert body["config"]["news_trending"]["ttl"] == 300
    assert body["handlers"] == {"asset": 1, "news": 1}


def test_no_invalidation_endpoints(client):
    assert client.post("/api/cache/invalidate").status_code in (404, 405)
    assert client.delete("/api/cache/market/USD-STELLARA").status_code == 405


def test_prometheus_metrics_endpoint(client):
    client.get("/")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_request_id_is_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_start_tolerates_unreachable_redis():
    service = CacheApiService(provider_latency_ms=0)
    service.store.start = AsyncMock(side_effect=StoreError("start", "connection refused"))

    await service.start()

    service.store.start.assert_awaited_once()


@pytest.mark.asyncio
async def test_stop_closes_store():
    service = CacheApiService(provider_latency_ms=0)
    service.store.stop = AsyncMock()

    await service.stop()

    service.store.stop.assert_awaited_once()


def test_reserved_news_category_returns_bad_request(client):
    response = client.get("/api/cache/news?category=trending")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
