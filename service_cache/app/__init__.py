"""
Cache Service package for the Market Cache Layer.

The cache service memoizes expensive upstream providers (market data, news)
behind time-bounded Redis entries:
- caching: key builder, TTL registry, Redis store adapter, cache service and
  the market/news facades.
- invalidation: event dispatcher that deletes entries when upstream data changes.
- providers: upstream fetchers served through the caches.
- main: FastAPI app exposing read-only endpoints and diagnostics.
"""
