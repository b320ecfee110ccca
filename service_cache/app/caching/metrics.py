"""
Hit/miss bookkeeping for the cache service.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from .config import CACHE_CONFIG, CacheConfigEntry, metric_buckets, resolve_bucket

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


@dataclass
class BucketCounter:
    """Hit and miss counts for one bucket."""
    hits: int = 0
    misses: int = 0

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.hits / self.total * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "total_requests": self.total,
        }


class CacheMetrics:
    """
    Owned map of bucket name to hit/miss counters.

    Buckets are derived from the TTL registry at construction; keys that match
    no registry entry are counted under an ad hoc bucket made of their own
    first two segments. Counters are guarded by a lock so worker threads can
    record safely alongside the event loop.
    """

    def __init__(
        self,
        registry: Mapping[str, CacheConfigEntry] = CACHE_CONFIG,
        *,
        collector: Optional["MetricsCollector"] = None,
    ):
        self.registry = registry
        self.collector = collector
        self._lock = threading.Lock()
        self._buckets: Dict[str, BucketCounter] = {}
        self._initialize_buckets()

    def _initialize_buckets(self):
        for bucket in metric_buckets(self.registry):
            self._buckets[bucket] = BucketCounter()

    def bucket_for(self, key: str) -> str:
        return resolve_bucket(key, self.registry)

    def record_hit(self, key: str) -> str:
        bucket = self.bucket_for(key)
        with self._lock:
            self._buckets.setdefault(bucket, BucketCounter()).hits += 1
        if self.collector:
            self.collector.increment_counter("cache_hits_total", bucket=bucket)
        return bucket

    def record_miss(self, key: str) -> str:
        bucket = self.bucket_for(key)
        with self._lock:
            self._buckets.setdefault(bucket, BucketCounter()).misses += 1
        if self.collector:
            self.collector.increment_counter("cache_misses_total", bucket=bucket)
        return bucket

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Point-in-time copy of every bucket's counters."""
        with self._lock:
            return {bucket: counter.to_dict() for bucket, counter in self._buckets.items()}

    def reset(self):
        """Zero every known bucket and restore any registry bucket."""
        with self._lock:
            known = list(self._buckets)
            self._buckets = {}
            self._initialize_buckets()
            for bucket in known:
                self._buckets.setdefault(bucket, BucketCounter())
