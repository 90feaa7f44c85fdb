"""Cache tiers and the multi-tier dispatcher.

This module contains:
- CacheTier interface and the MISSING marker
- MemoryTier (in-process, bounded) and RedisTier (networked, set-capable)
- MultiTierCache, the dispatcher used by the orchestrators
"""

from collections.abc import Sequence

from entity_cache.config import StoreConfig
from entity_cache.stores.base import MISSING, CacheTier
from entity_cache.stores.memory import MemoryTier
from entity_cache.stores.multi import MultiTierCache
from entity_cache.stores.redis import RedisTier


def build_tiers(stores: Sequence[StoreConfig]) -> list[CacheTier]:
    """Create tiers from store configuration, preserving order.

    Raises:
        ValueError: If a redis store has no URL or the type is unknown.
    """
    tiers: list[CacheTier] = []
    for store in stores:
        if store.type == "memory":
            tiers.append(MemoryTier(name=store.name, max_size=store.max_size))
        elif store.type == "redis":
            if not store.url:
                raise ValueError(f"Store '{store.name}' of type redis needs a url")
            tiers.append(RedisTier.from_url(store.url, name=store.name))
        else:
            raise ValueError(f"Unknown store type: {store.type}")
    return tiers


__all__ = [
    "MISSING",
    "CacheTier",
    "MemoryTier",
    "MultiTierCache",
    "RedisTier",
    "build_tiers",
]
