"""
News provider fronted by the news cache.
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from shared.errors import ValidationError
from shared.logging import get_logger

from ..caching.news_cache import ALL_CATEGORIES, NewsCacheService


_CATEGORY_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")
# Segments under the news prefix owned by other entries
_RESERVED_CATEGORIES = frozenset({"trending"})


class NewsArticle(BaseModel):
    id: str
    title: str
    description: str
    source: str
    category: str
    url: str
    image_url: Optional[str] = None
    published_at: datetime
    sentiment: Optional[Literal["positive", "neutral", "negative"]] = None


class NewsApiService:
    """Serves news through the cache, fetching from the simulated upstream on a miss."""

    def __init__(self, news_cache: NewsCacheService, *, latency_seconds: float = 0.2):
        self.news_cache = news_cache
        self.latency_seconds = latency_seconds
        self.logger = get_logger("cache.providers.news")

    async def get_news(self, category: str = ALL_CATEGORIES) -> List[Dict[str, Any]]:
        if not _CATEGORY_PATTERN.match(category or ""):
            raise ValidationError("Invalid news category", {"category": category})
        if category in _RESERVED_CATEGORIES:
            raise ValidationError("Reserved news category", {"category": category})
        return await self.news_cache.get_news(
            lambda: self.fetch_news(category),
            category,
        )

    async def get_trending_news(self) -> List[Dict[str, Any]]:
        return await self.news_cache.get_trending_news(self.fetch_trending_news)

    async def fetch_news(self, category: str) -> List[Dict[str, Any]]:
        await asyncio.sleep(self.latency_seconds)
        self.logger.info("Fetching news from upstream", category=category)

        now = datetime.now(timezone.utc)
        articles = [
            NewsArticle(
                id=f"{category}-1",
                title=f"{category.capitalize()} News 1",
                description="Latest developments in the crypto space",
                source="CryptoNews",
                category=category,
                url=f"https://example.com/news/{category}/1",
                image_url="https://example.com/images/news-1.jpg",
                published_at=now - timedelta(hours=1),
                sentiment="positive",
            ),
            NewsArticle(
                id=f"{category}-2",
                title=f"{category.capitalize()} News 2",
                description="Market update on blockchain technology",
                source="CryptoNews",
                category=category,
                url=f"https://example.com/news/{category}/2",
                image_url="https://example.com/images/news-2.jpg",
                published_at=now - timedelta(hours=2),
                sentiment="neutral",
            ),
        ]
        return [article.model_dump(mode="json") for article in articles]

    async def fetch_trending_news(self) -> List[Dict[str, Any]]:
        await asyncio.sleep(self.latency_seconds)
        self.logger.info("Fetching trending news from upstream")

        now = datetime.now(timezone.utc)
        articles = [
            NewsArticle(
                id="trending-1",
                title="Bitcoin Reaches New All-Time High",
                description="Cryptocurrency markets surge on positive regulatory news",
                source="CryptoNews",
                category="market-updates",
                url="https://example.com/news/trending/1",
                image_url="https://example.com/images/trending-1.jpg",
                published_at=now,
                sentiment="positive",
            ),
            NewsArticle(
                id="trending-2",
                title="Stellar Ecosystem Expands",
                description="New partnerships announced for Stellar blockchain",
                source="Stellar Official",
                category="stellar-updates",
                url="https://example.com/news/trending/2",
                image_url="https://example.com/images/trending-2.jpg",
                published_at=now - timedelta(minutes=30),
                sentiment="positive",
            ),
        ]
        return [article.model_dump(mode="json") for article in articles]
