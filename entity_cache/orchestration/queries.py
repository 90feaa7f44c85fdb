"""Read-through caching of query results.

Results are cached under the query fingerprint. Two write paths:
- default: written to every tier with the resolved TTL;
- infinite: when the Redis tier's query TTL is 0, written to Redis only,
  without expiry, and indexed by entity kind so that
  ``invalidate_kinds("User")`` drops every cached query over ``User``.

Both paths store the encoded ``[rows, info]`` form and decode it on read,
so a cached result is indistinguishable from a fetched one.
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from entity_cache.codec import decode_result, encode_result
from entity_cache.errors import NoBackingStoreError
from entity_cache.fingerprint import query_to_string
from entity_cache.models import Query, QueryResult
from entity_cache.orchestration.index import InvalidationResult
from entity_cache.stores.base import MISSING
from entity_cache.ttl import Ttl, disables_cache, is_infinite, resolve_ttl

if TYPE_CHECKING:
    from entity_cache.cache import EntityCache
    from entity_cache.stores.multi import MultiTierCache

logger = structlog.get_logger(__name__)

QueryFetch = Callable[[Query], Awaitable[QueryResult]]
TtlOption = int | Mapping[str, int] | None


class QueryCache:
    """Query orchestrator."""

    def __init__(self, owner: "EntityCache") -> None:
        self.owner = owner

    def fingerprint(self, query: Query) -> str:
        """Prefixed store key for ``query``."""
        return self.owner.config.cache_prefix.queries + query_to_string(query)

    def _ttl(self, override: TtlOption = None) -> Ttl:
        dispatcher = self.owner.dispatcher
        tier_names = dispatcher.tier_names if dispatcher else []
        return resolve_ttl("queries", self.owner.config, tier_names, override)

    def _require_dispatcher(self) -> "MultiTierCache":
        if self.owner.dispatcher is None:
            raise NoBackingStoreError("No cache store configured.")
        return self.owner.dispatcher

    def _bypass(self, cache: bool | None, ttl: Ttl) -> bool:
        if self.owner.dispatcher is None or disables_cache(ttl) or cache is False:
            return True
        return not self.owner.config.global_cache and cache is not True

    def _infinite(self, ttl: Ttl) -> bool:
        """Whether writes go to the entity-kind index instead of the tiers."""
        dispatcher = self.owner.dispatcher
        tier = dispatcher.set_capable_tier() if dispatcher else None
        if tier is None or self.owner.index.client is None:
            return False
        return is_infinite(ttl, tier.name)

    async def _write(self, query: Query, result: QueryResult, ttl: Ttl) -> None:
        fingerprint = self.fingerprint(query)
        encoded = encode_result(result)
        if self._infinite(ttl):
            await self.owner.index.register(fingerprint, encoded, query.kinds)
        else:
            await self._require_dispatcher().set(fingerprint, encoded, ttl)

    async def wrap(
        self,
        query: Query,
        fetch: QueryFetch | None = None,
        *,
        cache: bool | None = None,
        ttl: TtlOption = None,
    ) -> QueryResult:
        """Get a query result from cache, or run the query and cache it.

        Args:
            query: The query.
            fetch: Async callable running the query. Defaults to the
                datastore client's ``run_query``.
            cache: False skips the cache, True forces it when caching is
                globally off.
            ttl: Seconds, or ``{tier_name: seconds}``.

        Returns:
            The query result.

        Raises:
            InvalidArgumentError: If no fetch source is available.
            Exception: Any error raised by the fetch, unchanged.
        """
        fetch_fn = fetch or self.owner.default_query_fetch()
        resolved_ttl = self._ttl(ttl)

        if self._bypass(cache, resolved_ttl):
            logger.debug("cache_bypassed", kinds=query.kinds)
            return await fetch_fn(query)

        fingerprint = self.fingerprint(query)
        cached = await self._require_dispatcher().get(fingerprint, ttl=resolved_ttl)
        metrics = self.owner.metrics

        if cached is not MISSING:
            metrics.record_lookup(hits=1, misses=0)
            logger.debug("cache_hit", fingerprint=fingerprint)
            return decode_result(cached)  # type: ignore[return-value]

        metrics.record_lookup(hits=0, misses=1)
        logger.debug("cache_miss", fingerprint=fingerprint)

        try:
            result = await fetch_fn(query)
        except Exception as e:
            metrics.record_fetch(failed=True)
            logger.error("fetch_failed", fingerprint=fingerprint, error=str(e))
            raise
        metrics.record_fetch()

        await self._write(query, result, resolved_ttl)
        return result

    async def get(self, query: Query) -> QueryResult | None:
        """Cached result for ``query``, or None."""
        return (await self.mget([query]))[0]

    async def mget(self, queries: Iterable[Query]) -> list[QueryResult | None]:
        """Cached results for ``queries``, positional."""
        fingerprints = [self.fingerprint(q) for q in queries]
        raw = await self._require_dispatcher().mget(fingerprints)
        return [None if value is MISSING else decode_result(value) for value in raw]

    async def set(
        self, query: Query, result: QueryResult, *, ttl: TtlOption = None
    ) -> QueryResult:
        """Cache ``result`` for ``query``."""
        return (await self.mset([(query, result)], ttl=ttl))[0]

    async def mset(
        self,
        pairs: Iterable[tuple[Query, QueryResult]],
        *,
        ttl: TtlOption = None,
    ) -> list[QueryResult]:
        """Cache several ``(query, result)`` pairs.

        Each pair goes through the same write-path choice as ``wrap``.

        Returns:
            The results, in the order given.
        """
        resolved_ttl = self._ttl(ttl)
        written = []
        for query, result in pairs:
            await self._write(query, result, resolved_ttl)
            written.append(result)
        return written

    async def delete(self, *queries: Query) -> int:
        """Remove ``queries`` from every tier."""
        return await self._require_dispatcher().delete([self.fingerprint(q) for q in queries])

    async def register_kinds(
        self,
        query: Query,
        result: QueryResult,
        kinds: str | Iterable[str] | None = None,
    ) -> list[Any]:
        """Store ``result`` without expiry, indexed by entity kind.

        Args:
            query: The query the result belongs to.
            result: The result to store.
            kinds: Kinds to index under. Defaults to the query's kinds.

        Raises:
            NoBackingStoreError: If there is no Redis tier.
        """
        return await self.owner.index.register(
            self.fingerprint(query),
            encode_result(result),
            query.kinds if kinds is None else kinds,
        )

    async def invalidate_kinds(self, kinds: str | Iterable[str]) -> InvalidationResult:
        """Drop every query cached for ``kinds``.

        Entries are removed from Redis by the index and from the other tiers
        here, so back-filled copies do not outlive the invalidation.

        Raises:
            NoBackingStoreError: If there is no Redis tier.
        """
        result = await self.owner.index.invalidate(kinds)
        if result.fingerprints and self.owner.dispatcher is not None:
            await self.owner.dispatcher.delete(result.fingerprints)
        self.owner.metrics.invalidations += len(result.fingerprints)
        return result
