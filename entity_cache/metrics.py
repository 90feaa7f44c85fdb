"""Counters for cache orchestration."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheMetrics:
    """Metrics for cache performance.

    Attributes:
        hits: Lookups served from cache, negative entries included.
        negative_hits: Hits on a cached ``None`` (confirmed absent).
        misses: Lookups the cache could not serve.
        fetches: Fetch operations invoked.
        fetch_errors: Fetch operations that failed.
        negative_writes: ``None`` entries written after a not-found fetch.
        invalidations: Fingerprints removed by entity-kind invalidation.
    """

    hits: int = 0
    negative_hits: int = 0
    misses: int = 0
    fetches: int = 0
    fetch_errors: int = 0
    negative_writes: int = 0
    invalidations: int = 0

    @property
    def total_requests(self) -> int:
        """Total number of cache lookups."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as a percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.hits / self.total_requests) * 100

    def record_lookup(self, hits: int, misses: int, negative_hits: int = 0) -> None:
        self.hits += hits
        self.misses += misses
        self.negative_hits += negative_hits

    def record_fetch(self, failed: bool = False) -> None:
        self.fetches += 1
        if failed:
            self.fetch_errors += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "hits": self.hits,
            "negative_hits": self.negative_hits,
            "misses": self.misses,
            "total_requests": self.total_requests,
            "hit_rate": round(self.hit_rate, 2),
            "fetches": self.fetches,
            "fetch_errors": self.fetch_errors,
            "negative_writes": self.negative_writes,
            "invalidations": self.invalidations,
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self.hits = 0
        self.negative_hits = 0
        self.misses = 0
        self.fetches = 0
        self.fetch_errors = 0
        self.negative_writes = 0
        self.invalidations = 0
