"""
Cache invalidation package.

Translates upstream update events (asset changed, news changed) into
deletions against the cache service and the domain caches.
"""

from .events import AssetUpdateKind, AssetUpdatedEvent, NewsUpdatedEvent
from .service import CacheInvalidationService

__all__ = [
    "AssetUpdateKind",
    "AssetUpdatedEvent",
    "CacheInvalidationService",
    "NewsUpdatedEvent",
]
