"""Redis tier.

Values are stored as JSON so a cached ``None`` reads back as ``None`` while
an absent key reads back as ``MISSING``. The tier also hands its client to
the entity-kind index, which needs set commands.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
import structlog

from entity_cache.codec import deserialize, serialize
from entity_cache.stores.base import MISSING, CacheTier

if TYPE_CHECKING:
    from redis.asyncio.client import Redis

logger = structlog.get_logger(__name__)


def _expiry(ttl: int | None) -> int | None:
    return ttl if ttl is not None and ttl > 0 else None


class RedisTier(CacheTier):
    """Networked tier backed by ``redis.asyncio``.

    Example:
        tier = RedisTier.from_url("redis://localhost:6379")
        await tier.set("gck:123", {"name": "John"}, ttl=600)
    """

    supports_sets = True

    def __init__(self, client: "Redis", name: str = "redis") -> None:
        super().__init__(name)
        self.client = client

    @classmethod
    def from_url(cls, url: str, name: str = "redis") -> "RedisTier":
        """Create a tier with its own connection pool."""
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, name=name)

    async def get(self, key: str) -> Any:
        data = await self.client.get(key)
        if data is None:
            return MISSING
        return deserialize(data)

    async def mget(self, keys: Sequence[str]) -> list[Any]:
        if not keys:
            return []
        raw = await self.client.mget(list(keys))
        return [MISSING if data is None else deserialize(data) for data in raw]

    async def set(self, key: str, value: Any, ttl: int | None) -> None:
        await self.client.set(key, serialize(value), ex=_expiry(ttl))
        logger.debug("tier_set", tier=self.name, key=key, ttl=ttl)

    async def mset(self, items: Sequence[tuple[str, Any]], ttl: int | None) -> None:
        if not items:
            return
        async with self.client.pipeline(transaction=False) as pipe:
            for key, value in items:
                pipe.set(key, serialize(value), ex=_expiry(ttl))
            await pipe.execute()
        logger.debug("tier_mset", tier=self.name, count=len(items), ttl=ttl)

    async def delete(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    async def reset(self) -> None:
        """Flush the current Redis database."""
        await self.client.flushdb()

    async def close(self) -> None:
        await self.client.aclose()
