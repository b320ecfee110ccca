"""
Domain update events that trigger cache invalidation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Optional, Protocol


class AssetUpdateKind(str, Enum):
    """Which part of an asset changed."""
    PRICE = "price"
    VOLUME = "volume"
    METADATA = "metadata"
    ALL = "all"


@dataclass(frozen=True)
class AssetUpdatedEvent:
    """Emitted when an asset changes upstream."""
    asset_id: str
    kind: AssetUpdateKind = AssetUpdateKind.ALL


@dataclass(frozen=True)
class NewsUpdatedEvent:
    """Emitted when news data changes upstream."""
    category: Optional[str] = None
    is_trending: bool = False


class AssetUpdateHandler(Protocol):
    def __call__(self, event: AssetUpdatedEvent) -> Awaitable[None]: ...


class NewsUpdateHandler(Protocol):
    def __call__(self, event: NewsUpdatedEvent) -> Awaitable[None]: ...
