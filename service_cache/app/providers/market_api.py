"""
Market data provider fronted by the market cache.
"""

from __future__ import annotations

import asyncio
import random
import re
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel

from shared.errors import ValidationError
from shared.logging import get_logger

from ..caching.market_cache import MarketCacheService


_ASSET_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class MarketSnapshot(BaseModel):
    """Point-in-time market figures for an asset."""

    asset_id: str
    price: float
    volume_24h: float
    market_cap: float
    price_change_24h: float
    timestamp: datetime


class MacdIndicator(BaseModel):
    value: float
    signal: float
    histogram: float


class BollingerBands(BaseModel):
    upper: float
    middle: float
    lower: float


class MovingAverages(BaseModel):
    sma20: float
    sma50: float
    ema12: float


class ExtendedMarketData(MarketSnapshot):
    """Snapshot enriched with technical indicators."""

    rsi: float
    macd: MacdIndicator
    bollinger_bands: BollingerBands
    moving_averages: MovingAverages


class MarketApiService:
    """
    Serves market data through the cache, fetching from upstream on a miss.

    The upstream feed is simulated; ``latency_seconds`` stands in for the
    network round trip.
    """

    def __init__(self, market_cache: MarketCacheService, *, latency_seconds: float = 0.1):
        self.market_cache = market_cache
        self.latency_seconds = latency_seconds
        self.logger = get_logger("cache.providers.market")

    async def get_market_snapshot(self, asset_id: str) -> Dict[str, Any]:
        self._validate_asset(asset_id)
        return await self.market_cache.get_market_snapshot(
            asset_id,
            lambda: self.fetch_market_snapshot(asset_id),
        )

    async def get_extended_market_data(self, asset_id: str) -> Dict[str, Any]:
        self._validate_asset(asset_id)
        return await self.market_cache.get_extended_market_data(
            asset_id,
            lambda: self.fetch_extended_market_data(asset_id),
        )

    async def fetch_market_snapshot(self, asset_id: str) -> Dict[str, Any]:
        """Fetch a live snapshot from the upstream feed."""
        await asyncio.sleep(self.latency_seconds)
        self.logger.info("Fetching market snapshot from upstream", asset_id=asset_id)

        snapshot = MarketSnapshot(asset_id=asset_id, **self._base_figures())
        return snapshot.model_dump(mode="json")

    async def fetch_extended_market_data(self, asset_id: str) -> Dict[str, Any]:
        """Fetch a snapshot plus technical indicators from the upstream feed."""
        await asyncio.sleep(self.latency_seconds * 1.5)
        self.logger.info("Fetching extended market data from upstream", asset_id=asset_id)

        extended = ExtendedMarketData(
            asset_id=asset_id,
            rsi=40 + random.random() * 40,
            macd=MacdIndicator(
                value=random.random() - 0.5,
                signal=random.random() - 0.5,
                histogram=random.random() - 0.5,
            ),
            bollinger_bands=BollingerBands(
                upper=110 + random.random() * 5,
                middle=100 + random.random() * 5,
                lower=90 + random.random() * 5,
            ),
            moving_averages=MovingAverages(
                sma20=100 + random.random() * 5,
                sma50=99 + random.random() * 5,
                ema12=101 + random.random() * 5,
            ),
            **self._base_figures(),
        )
        return extended.model_dump(mode="json")

    @staticmethod
    def _base_figures() -> Dict[str, Any]:
        return {
            "price": 100.5 + random.random() * 10,
            "volume_24h": 1_000_000 + random.random() * 100_000,
            "market_cap": 1_000_000_000 + random.random() * 100_000_000,
            "price_change_24h": -2.5 + random.random() * 5,
            "timestamp": datetime.now(timezone.utc),
        }

    @staticmethod
    def _validate_asset(asset_id: str) -> None:
        if not _ASSET_PATTERN.match(asset_id or ""):
            raise ValidationError("Invalid asset id", {"asset_id": asset_id})
