"""
Market data cache: snapshots and extended (technical indicator) data per asset.
"""

import asyncio
from typing import Any

from .cache_service import CacheService, Provider
from .config import CACHE_CONFIG
from .keys import build_key


class MarketCacheService:
    """Caches market snapshots and extended market data keyed by asset id."""

    def __init__(self, cache_service: CacheService):
        self.cache_service = cache_service
        self.snapshot_config = CACHE_CONFIG["MARKET_SNAPSHOT"]
        self.extended_config = CACHE_CONFIG["MARKET_SNAPSHOT_EXTENDED"]

    def snapshot_key(self, asset_id: str) -> str:
        return build_key(self.snapshot_config.prefix, asset_id)

    def extended_key(self, asset_id: str) -> str:
        return build_key(self.extended_config.prefix, asset_id)

    async def get_market_snapshot(self, asset_id: str, provider: Provider) -> Any:
        """Get market snapshot (prices, volumes) for an asset."""
        return await self.cache_service.get_or_set(
            self.snapshot_key(asset_id),
            provider,
            self.snapshot_config.ttl,
        )

    async def get_extended_market_data(self, asset_id: str, provider: Provider) -> Any:
        """Get extended market data (technical indicators) for an asset."""
        return await self.cache_service.get_or_set(
            self.extended_key(asset_id),
            provider,
            self.extended_config.ttl,
        )

    async def invalidate_market_cache(self, asset_id: str) -> None:
        """Drop both the snapshot and the extended entry for an asset."""
        await asyncio.gather(
            self.cache_service.delete(self.snapshot_key(asset_id)),
            self.cache_service.delete(self.extended_key(asset_id)),
        )

    async def invalidate_extended_market_data(self, asset_id: str) -> None:
        await self.cache_service.delete(self.extended_key(asset_id))
