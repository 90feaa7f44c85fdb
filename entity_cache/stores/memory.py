"""Bounded in-process tier.

Eviction is delegated to ``cachetools.TLRUCache``: least recently used
entries go first once ``max_size`` is reached, and each entry expires after
its own TTL.
"""

import math
from collections.abc import Sequence
from typing import Any, NamedTuple

import structlog
from cachetools import TLRUCache

from entity_cache.stores.base import MISSING, CacheTier

logger = structlog.get_logger(__name__)

DEFAULT_MAX_SIZE = 100


class _Entry(NamedTuple):
    value: Any
    ttl: int | None


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    if entry.ttl is None or entry.ttl <= 0:
        return math.inf
    return now + entry.ttl


class MemoryTier(CacheTier):
    """In-process LRU tier with per-entry TTL.

    Values are stored as given, so ``None`` is kept as a negative entry.
    """

    def __init__(self, name: str = "memory", max_size: int = DEFAULT_MAX_SIZE) -> None:
        super().__init__(name)
        self.max_size = max_size
        self._cache = TLRUCache(maxsize=max_size, ttu=_time_to_use)

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> Any:
        entry = self._cache.get(key)
        if entry is None:
            return MISSING
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None) -> None:
        self._cache[key] = _Entry(value, ttl)
        logger.debug("tier_set", tier=self.name, key=key, ttl=ttl)

    async def delete(self, keys: Sequence[str]) -> int:
        deleted = 0
        for key in keys:
            if self._cache.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def reset(self) -> None:
        self._cache.clear()
