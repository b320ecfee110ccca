"""
News cache: articles per category plus the trending list.
"""

import asyncio
from typing import Any

from .cache_service import CacheService, Provider
from .config import CACHE_CONFIG
from .keys import build_key

ALL_CATEGORIES = "all"


class NewsCacheService:
    """Caches news articles by category and the trending news list."""

    def __init__(self, cache_service: CacheService):
        self.cache_service = cache_service
        self.news_config = CACHE_CONFIG["NEWS"]
        self.trending_config = CACHE_CONFIG["NEWS_TRENDING"]

    def category_key(self, category: str = ALL_CATEGORIES) -> str:
        # "all" collapses to the bare prefix
        return build_key(self.news_config.prefix, "" if category == ALL_CATEGORIES else category)

    def trending_key(self) -> str:
        return build_key(self.trending_config.prefix)

    async def get_news(self, provider: Provider, category: str = ALL_CATEGORIES) -> Any:
        """Get news articles, optionally filtered by category."""
        return await self.cache_service.get_or_set(
            self.category_key(category),
            provider,
            self.news_config.ttl,
        )

    async def get_trending_news(self, provider: Provider) -> Any:
        return await self.cache_service.get_or_set(
            self.trending_key(),
            provider,
            self.trending_config.ttl,
        )

    async def invalidate_news_cache(self) -> None:
        """Drop every news entry: all categories, the trending list and the unfiltered list."""
        await asyncio.gather(
            self.cache_service.delete_by_pattern(f"{self.news_config.prefix}:*"),
            self.cache_service.delete_by_pattern(f"{self.trending_config.prefix}:*"),
            self.cache_service.delete(self.category_key(ALL_CATEGORIES)),
        )

    async def invalidate_news_category_cache(self, category: str) -> None:
        await self.cache_service.delete(self.category_key(category))

    async def invalidate_trending_news(self) -> None:
        await self.cache_service.delete(self.trending_key())
