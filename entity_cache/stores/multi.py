"""Multi-tier cache dispatcher.

Puts several tiers behind one facade. Reads walk the tiers in order and
stop at the first hit; entries found in a slower tier are copied into the
faster tiers that missed them. Writes and deletes go to every tier, each
with its own TTL taken from the resolved ``Ttl``.
"""

from collections.abc import Sequence
from typing import Any

import structlog

from entity_cache.stores.base import MISSING, CacheTier
from entity_cache.ttl import Ttl

logger = structlog.get_logger(__name__)


class MultiTierCache:
    """Dispatcher over an ordered list of tiers, fastest first.

    Example:
        cache = MultiTierCache([MemoryTier(), RedisTier.from_url(url)])
        await cache.set("gck:123", {"name": "John"}, ttl=ScalarTtl(600))
        value = await cache.get("gck:123")
    """

    def __init__(self, tiers: Sequence[CacheTier]) -> None:
        if not tiers:
            raise ValueError("MultiTierCache needs at least one tier")
        self.tiers = list(tiers)

    @property
    def tier_names(self) -> list[str]:
        return [tier.name for tier in self.tiers]

    def set_capable_tier(self) -> CacheTier | None:
        """First tier that supports set commands, if any."""
        for tier in self.tiers:
            if tier.supports_sets:
                return tier
        return None

    async def get(self, key: str, ttl: Ttl | None = None) -> Any:
        """Read ``key`` from the first tier that has it.

        Args:
            key: Store key.
            ttl: When given, faster tiers that missed are back-filled.

        Returns:
            The entry, or ``MISSING``.
        """
        return (await self.mget([key], ttl=ttl))[0]

    async def mget(self, keys: Sequence[str], ttl: Ttl | None = None) -> list[Any]:
        """Read several keys. Results are positional, ``MISSING`` where absent."""
        results: list[Any] = [MISSING] * len(keys)
        pending = list(range(len(keys)))
        missed_by: list[tuple[CacheTier, list[int]]] = []

        for tier in self.tiers:
            if not pending:
                break
            values = await tier.mget([keys[i] for i in pending])
            found: set[int] = set()
            still_pending = []
            for index, value in zip(pending, values, strict=True):
                if value is MISSING:
                    still_pending.append(index)
                else:
                    results[index] = value
                    found.add(index)

            if ttl is not None and found:
                for faster, missed in missed_by:
                    backfill = [(keys[i], results[i]) for i in missed if i in found]
                    if backfill:
                        await faster.mset(backfill, ttl.for_tier(faster.name))

            missed_by.append((tier, still_pending))
            pending = still_pending

        return results

    async def set(self, key: str, value: Any, ttl: Ttl) -> None:
        await self.mset([(key, value)], ttl)

    async def mset(self, items: Sequence[tuple[str, Any]], ttl: Ttl) -> None:
        """Write every pair to every tier."""
        for tier in self.tiers:
            await tier.mset(items, ttl.for_tier(tier.name))
        logger.debug("cache_mset", count=len(items), tiers=self.tier_names)

    async def delete(self, keys: Sequence[str]) -> int:
        """Delete from every tier. Returns the largest per-tier count."""
        deleted = 0
        for tier in self.tiers:
            deleted = max(deleted, await tier.delete(keys))
        return deleted

    async def reset(self) -> None:
        for tier in self.tiers:
            await tier.reset()

    async def close(self) -> None:
        for tier in self.tiers:
            await tier.close()
