"""Entity cache facade.

``EntityCache`` owns the configuration, the multi-tier dispatcher, the
entity-kind index and the metrics, and exposes the two orchestrators:

    from redis.asyncio import Redis

    cache = EntityCache(
        CacheConfig.from_dict({"ttl": {"keys": 600, "queries": 60}}),
        tiers=[MemoryTier(), RedisTier(Redis.from_url(url, decode_responses=True))],
        datastore=client,
    )

    user = await cache.keys.wrap(Key.from_path("User", 123))
    result = await cache.queries.wrap(query)
    await cache.queries.invalidate_kinds("User")

    await cache.close()

Instances are independent; create one per configuration and share it.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from entity_cache.config import CacheConfig, Settings
from entity_cache.errors import InvalidArgumentError, NoBackingStoreError
from entity_cache.metrics import CacheMetrics
from entity_cache.models import DatastoreClient
from entity_cache.orchestration.index import EntityKindIndex
from entity_cache.orchestration.keys import KeyCache, KeysFetch
from entity_cache.orchestration.queries import QueryCache, QueryFetch
from entity_cache.stores import CacheTier, MultiTierCache, RedisTier, build_tiers
from entity_cache.ttl import Ttl

if TYPE_CHECKING:
    from redis.asyncio.client import Redis

logger = structlog.get_logger(__name__)


def _detect_redis(tiers: Sequence[CacheTier]) -> "Redis | None":
    for tier in tiers:
        if isinstance(tier, RedisTier):
            return tier.client
    return None


class EntityCache:
    """Caching layer in front of a datastore.

    Attributes:
        config: Cache configuration. Mutable; read on every call.
        dispatcher: Multi-tier dispatcher, None when no tier is configured
            (every call then goes straight to the fetch).
        datastore: Default fetch source.
        metrics: Counters shared by both orchestrators.
        index: Entity-kind index on the Redis tier.
        keys: Keyed-entity orchestrator.
        queries: Query orchestrator.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        tiers: Sequence[CacheTier] | None = None,
        datastore: DatastoreClient | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            config: Configuration. Defaults to ``CacheConfig()``.
            tiers: Tiers to use instead of building them from
                ``config.stores``.
            datastore: Client used when a call passes no fetch callable.
        """
        self.config = config or CacheConfig()
        self.datastore = datastore
        self.metrics = CacheMetrics()

        tier_list = list(tiers) if tiers is not None else build_tiers(self.config.stores)
        self.dispatcher: MultiTierCache | None = MultiTierCache(tier_list) if tier_list else None
        self.index = EntityKindIndex(
            _detect_redis(tier_list), prefix=self.config.cache_prefix.queries
        )

        self.keys = KeyCache(self)
        self.queries = QueryCache(self)

        logger.info(
            "entity_cache_initialized",
            tiers=self.dispatcher.tier_names if self.dispatcher else [],
            redis=self.redis_client is not None,
            global_cache=self.config.global_cache,
        )

    @classmethod
    def from_env(cls, datastore: DatastoreClient | None = None) -> "EntityCache":
        """Create a cache configured from environment variables."""
        return cls(CacheConfig.from_settings(Settings.from_env()), datastore=datastore)

    @property
    def redis_client(self) -> "Redis | None":
        """Client of the Redis tier, if one is configured."""
        return self.index.client

    def default_keys_fetch(self) -> KeysFetch:
        """The datastore's ``get``, used when a call passes no fetch."""
        if self.datastore is None:
            raise InvalidArgumentError("No fetch function passed and no datastore configured.")
        return self.datastore.get

    def default_query_fetch(self) -> QueryFetch:
        """The datastore's ``run_query``, used when a call passes no fetch."""
        if self.datastore is None:
            raise InvalidArgumentError("No fetch function passed and no datastore configured.")
        return self.datastore.run_query

    def _require_dispatcher(self) -> MultiTierCache:
        if self.dispatcher is None:
            raise NoBackingStoreError("No cache store configured.")
        return self.dispatcher

    async def prime(
        self,
        fingerprints: str | Sequence[str],
        values: Any,
        ttl: Ttl,
    ) -> None:
        """Write fingerprint/value pairs in one batch.

        A single fingerprint is paired with ``values`` as a whole, so a list
        value stays a list.
        """
        if isinstance(fingerprints, str):
            items = [(fingerprints, values)]
        else:
            items = list(zip(fingerprints, values, strict=True))
        await self._require_dispatcher().mset(items, ttl)

    # -------------------------------------------------------------------------
    # Forwarding to the dispatcher
    # -------------------------------------------------------------------------

    async def get(self, key: str, ttl: Ttl | None = None) -> Any:
        return await self._require_dispatcher().get(key, ttl=ttl)

    async def mget(self, keys: Sequence[str], ttl: Ttl | None = None) -> list[Any]:
        return await self._require_dispatcher().mget(keys, ttl=ttl)

    async def set(self, key: str, value: Any, ttl: Ttl) -> None:
        await self._require_dispatcher().set(key, value, ttl)

    async def mset(self, items: Sequence[tuple[str, Any]], ttl: Ttl) -> None:
        await self._require_dispatcher().mset(items, ttl)

    async def delete(self, keys: Sequence[str]) -> int:
        return await self._require_dispatcher().delete(keys)

    async def close(self, reset: bool = False) -> None:
        """Release connections held by the tiers.

        The cache bypasses itself afterwards. Safe to call twice.

        Args:
            reset: Drop every entry first. For the Redis tier this flushes
                the whole database.
        """
        if self.dispatcher is None:
            return
        if reset:
            await self.dispatcher.reset()
        await self.dispatcher.close()
        self.dispatcher = None
        self.index.client = None
        logger.info("entity_cache_closed")
