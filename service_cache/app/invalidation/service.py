"""
Cache invalidation dispatcher.

Maps asset and news update events onto cache deletions. Each event type has
an ordered list of handlers; the first one is the built-in invalidation and
more can be appended at any time. Handlers run one after another in
registration order, and a failing handler is logged without stopping the
rest.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Union, TYPE_CHECKING

from shared.errors import ValidationError
from shared.logging import get_logger

from ..caching.cache_service import CacheService
from ..caching.config import CacheKeyPrefix
from ..caching.keys import simplify_prefix
from ..caching.market_cache import MarketCacheService
from ..caching.news_cache import NewsCacheService
from .events import (
    AssetUpdateHandler,
    AssetUpdateKind,
    AssetUpdatedEvent,
    NewsUpdateHandler,
    NewsUpdatedEvent,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


CLEAR_ALL_PATTERNS = (
    f"{simplify_prefix(CacheKeyPrefix.MARKET_SNAPSHOT.value)}:*",
    f"{CacheKeyPrefix.NEWS.value}:*",
    f"{CacheKeyPrefix.METRICS.value}:*",
)


class CacheInvalidationService:
    """Dispatches update events to the registered invalidation handlers."""

    def __init__(
        self,
        cache_service: CacheService,
        market_cache: MarketCacheService,
        news_cache: NewsCacheService,
        *,
        collector: Optional["MetricsCollector"] = None,
    ):
        self.cache_service = cache_service
        self.market_cache = market_cache
        self.news_cache = news_cache
        self.collector = collector
        self.logger = get_logger("cache.invalidation")
        self._asset_handlers: List[AssetUpdateHandler] = []
        self._news_handlers: List[NewsUpdateHandler] = []
        self._register_default_handlers()

    def _register_default_handlers(self):
        self.on_asset_updated(self._handle_asset_updated)
        self.on_news_updated(self._handle_news_updated)

    def on_asset_updated(self, handler: AssetUpdateHandler) -> None:
        """Append an asset update handler. Handlers are never removed."""
        if not callable(handler):
            raise ValidationError("Asset update handler must be callable")
        self._asset_handlers.append(handler)

    def on_news_updated(self, handler: NewsUpdateHandler) -> None:
        """Append a news update handler. Handlers are never removed."""
        if not callable(handler):
            raise ValidationError("News update handler must be callable")
        self._news_handlers.append(handler)

    @property
    def asset_handlers(self) -> Sequence[AssetUpdateHandler]:
        return tuple(self._asset_handlers)

    @property
    def news_handlers(self) -> Sequence[NewsUpdateHandler]:
        return tuple(self._news_handlers)

    def handler_counts(self) -> Dict[str, int]:
        return {"asset": len(self._asset_handlers), "news": len(self._news_handlers)}

    async def emit_asset_updated(
        self,
        asset_id: str,
        kind: Union[AssetUpdateKind, str] = AssetUpdateKind.ALL,
    ) -> None:
        """Run every asset handler for the update, in registration order."""
        try:
            kind = AssetUpdateKind(kind)
        except ValueError:
            raise ValidationError(
                f"Unknown asset update kind: {kind}",
                {"allowed": [member.value for member in AssetUpdateKind]},
            )

        event = AssetUpdatedEvent(asset_id=asset_id, kind=kind)
        self._record_event("asset_updated")

        for handler in list(self._asset_handlers):
            try:
                await handler(event)
            except Exception as e:
                self.logger.error(
                    "Error in asset update handler",
                    asset_id=asset_id,
                    kind=kind.value,
                    handler=_handler_name(handler),
                    error=str(e),
                )

    async def emit_news_updated(self, category: Optional[str] = None, is_trending: bool = False) -> None:
        """Run every news handler for the update, in registration order."""
        event = NewsUpdatedEvent(category=category, is_trending=bool(is_trending))
        self._record_event("news_updated")

        for handler in list(self._news_handlers):
            try:
                await handler(event)
            except Exception as e:
                self.logger.error(
                    "Error in news update handler",
                    category=category,
                    handler=_handler_name(handler),
                    error=str(e),
                )

    async def _handle_asset_updated(self, event: AssetUpdatedEvent) -> None:
        self.logger.info(
            "Cache invalidation triggered for asset",
            asset_id=event.asset_id,
            kind=event.kind.value,
        )

        if event.kind is AssetUpdateKind.METADATA:
            # Metadata only feeds the extended view
            await self.market_cache.invalidate_extended_market_data(event.asset_id)
        else:
            await self.market_cache.invalidate_market_cache(event.asset_id)

    async def _handle_news_updated(self, event: NewsUpdatedEvent) -> None:
        self.logger.info(
            "Cache invalidation triggered for news",
            category=event.category,
            is_trending=event.is_trending,
        )

        if event.category:
            await self.news_cache.invalidate_news_category_cache(event.category)
        else:
            await self.news_cache.invalidate_news_cache()

        if event.is_trending:
            await self.news_cache.invalidate_trending_news()

    async def clear_all_caches(self) -> int:
        """Delete every market, news and metrics entry. Administrative use only."""
        self.logger.warning("Clearing all caches", patterns=list(CLEAR_ALL_PATTERNS))
        results = await asyncio.gather(
            *(self.cache_service.delete_by_pattern(pattern) for pattern in CLEAR_ALL_PATTERNS)
        )
        return sum(results)

    def _record_event(self, event_type: str):
        if self.collector:
            self.collector.increment_counter("cache_invalidations_total", event_type=event_type)


def _handler_name(handler) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__name__
