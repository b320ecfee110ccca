"""
Upstream data providers served through the domain caches.
"""

from .market_api import ExtendedMarketData, MarketApiService, MarketSnapshot
from .news_api import NewsApiService, NewsArticle

__all__ = [
    "ExtendedMarketData",
    "MarketApiService",
    "MarketSnapshot",
    "NewsApiService",
    "NewsArticle",
]
