"""
Cache TTL registry.

Defines the TTL and key prefix for every cached data category and the
longest-prefix matcher shared by TTL resolution and metric bucketing.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from .keys import KEY_SEPARATOR, simplify_prefix


DEFAULT_TTL = 300


class CacheKeyPrefix(str, Enum):
    """Root prefixes of the cache namespaces."""
    MARKET_SNAPSHOT = "cache:market:snapshot"
    NEWS = "cache:news"
    METRICS = "cache:metrics"


@dataclass(frozen=True)
class CacheConfigEntry:
    """TTL configuration for one cache category. A ttl of 0 means no expiry."""

    name: str
    ttl: int
    prefix: str
    description: str

    def __post_init__(self):
        if self.ttl < 0:
            raise ValueError(f"ttl for {self.name} must be >= 0, got {self.ttl}")
        if not self.prefix:
            raise ValueError(f"prefix for {self.name} must not be empty")

    @property
    def bucket(self) -> str:
        """Simplified prefix used as the metrics bucket name."""
        return simplify_prefix(self.prefix)


CACHE_CONFIG: Mapping[str, CacheConfigEntry] = MappingProxyType({
    "MARKET_SNAPSHOT": CacheConfigEntry(
        name="MARKET_SNAPSHOT",
        ttl=60,
        prefix=CacheKeyPrefix.MARKET_SNAPSHOT.value,
        description="Market snapshot data (prices, volumes, etc.)",
    ),
    "MARKET_SNAPSHOT_EXTENDED": CacheConfigEntry(
        name="MARKET_SNAPSHOT_EXTENDED",
        ttl=300,
        prefix=f"{CacheKeyPrefix.MARKET_SNAPSHOT.value}{KEY_SEPARATOR}extended",
        description="Extended market data with technical indicators",
    ),
    "NEWS": CacheConfigEntry(
        name="NEWS",
        ttl=600,
        prefix=CacheKeyPrefix.NEWS.value,
        description="Crypto news and market updates",
    ),
    "NEWS_TRENDING": CacheConfigEntry(
        name="NEWS_TRENDING",
        ttl=300,
        prefix=f"{CacheKeyPrefix.NEWS.value}{KEY_SEPARATOR}trending",
        description="Trending news articles",
    ),
})


def _by_prefix_length(registry: Mapping[str, CacheConfigEntry]) -> List[CacheConfigEntry]:
    return sorted(registry.values(), key=lambda entry: len(entry.prefix), reverse=True)


def find_matching_config(
    key: str,
    registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG,
) -> Optional[CacheConfigEntry]:
    """
    Find the registry entry whose prefix matches the key.

    Longer prefixes are tried first so that ``cache:market:snapshot`` never
    shadows ``cache:market:snapshot:extended``.
    """
    for entry in _by_prefix_length(registry):
        if key.startswith(entry.prefix):
            return entry
    return None


def resolve_ttl(
    key: str,
    registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG,
    default: int = DEFAULT_TTL,
) -> int:
    """TTL for a key; the default applies only when no entry matches."""
    entry = find_matching_config(key, registry)
    return entry.ttl if entry is not None else default


def resolve_bucket(key: str, registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG) -> str:
    """Metrics bucket for a key, falling back to the key's own first two segments."""
    entry = find_matching_config(key, registry)
    return entry.bucket if entry is not None else simplify_prefix(key)


def metric_buckets(registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG) -> List[str]:
    """Distinct bucket names in registry order."""
    return list(dict.fromkeys(entry.bucket for entry in registry.values()))


def config_summary(registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG) -> Dict[str, Dict[str, object]]:
    """JSON-friendly view of the registry keyed by lower-case category name."""
    return {
        name.lower(): {
            "ttl": entry.ttl,
            "prefix": entry.prefix,
            "description": entry.description,
        }
        for name, entry in registry.items()
    }
