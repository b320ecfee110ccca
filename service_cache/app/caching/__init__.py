"""
Cache package.

Provides the Redis-backed cache service, the TTL registry it resolves keys
against, and the market/news facades built on top of it. Prefer short-lived
entries and explicit invalidation.
"""

from .cache_service import CacheService
from .config import CACHE_CONFIG, CacheConfigEntry, CacheKeyPrefix
from .keys import build_key, parse_key
from .market_cache import MarketCacheService
from .metrics import CacheMetrics
from .news_cache import NewsCacheService
from .store import RedisStore

__all__ = [
    "CACHE_CONFIG",
    "CacheConfigEntry",
    "CacheKeyPrefix",
    "CacheMetrics",
    "CacheService",
    "MarketCacheService",
    "NewsCacheService",
    "RedisStore",
    "build_key",
    "parse_key",
]
