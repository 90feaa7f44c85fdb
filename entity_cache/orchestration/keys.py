"""Read-through caching of entities by Key.

``KeyCache.wrap`` serves what it can from cache, fetches only what is
missing, writes the fetched entities back and returns everything in the
order the keys were given:

    cached = await cache.keys.wrap([key1, key2, key3], fetch_users)

A key whose lookup is known to come back empty is cached as ``None`` so
the next call does not fetch it again.
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import structlog

from entity_cache.errors import (
    InvalidArgumentError,
    NoBackingStoreError,
    is_not_found,
)
from entity_cache.fingerprint import key_to_string
from entity_cache.models import Key, KeyedEntity
from entity_cache.stores.base import MISSING
from entity_cache.ttl import Ttl, resolve_ttl

if TYPE_CHECKING:
    from entity_cache.cache import EntityCache
    from entity_cache.stores.multi import MultiTierCache

logger = structlog.get_logger(__name__)

KeysFetch = Callable[[list[Key]], Awaitable[Any]]
TtlOption = int | Mapping[str, int] | None


def _as_entity_list(result: Any) -> list[KeyedEntity | None]:
    if result is None:
        return []
    if isinstance(result, KeyedEntity):
        return [result]
    return list(result)


def _plain_value(value: Any) -> Any:
    if isinstance(value, KeyedEntity):
        return dict(value.value)
    return value


class KeyCache:
    """Keyed-entity orchestrator.

    Attributes:
        owner: The ``EntityCache`` providing config, dispatcher and metrics.
    """

    def __init__(self, owner: "EntityCache") -> None:
        self.owner = owner

    def fingerprint(self, key: Key) -> str:
        """Prefixed store key for ``key``."""
        return self.owner.config.cache_prefix.keys + key_to_string(key)

    def _ttl(self, override: TtlOption = None) -> Ttl:
        dispatcher = self.owner.dispatcher
        tier_names = dispatcher.tier_names if dispatcher else []
        return resolve_ttl("keys", self.owner.config, tier_names, override)

    def _require_dispatcher(self) -> "MultiTierCache":
        if self.owner.dispatcher is None:
            raise NoBackingStoreError("No cache store configured.")
        return self.owner.dispatcher

    def _bypass(self, cache: bool | None) -> bool:
        if self.owner.dispatcher is None or cache is False:
            return True
        return not self.owner.config.global_cache and cache is not True

    def _order(self, entities: list[KeyedEntity | None], keys: Sequence[Key]) -> list[Any]:
        """Values of ``entities`` aligned with ``keys``, None where absent."""
        by_fingerprint = {
            self.fingerprint(entity.key): dict(entity.value)
            for entity in entities
            if entity is not None
        }
        return [by_fingerprint.get(self.fingerprint(key)) for key in keys]

    async def wrap(
        self,
        keys: Key | Sequence[Key],
        fetch: KeysFetch | None = None,
        *,
        cache: bool | None = None,
        ttl: TtlOption = None,
    ) -> Any:
        """Get entities from cache, fetching and caching whatever is missing.

        Args:
            keys: One Key, or a sequence of Keys.
            fetch: Async callable receiving the list of keys to load. Defaults
                to the datastore client's ``get``.
            cache: False skips the cache, True forces it when caching is
                globally off.
            ttl: Seconds, or ``{tier_name: seconds}``.

        Returns:
            A ``KeyedEntity`` (or None) for a single Key, otherwise a list in
            the order of ``keys``. When the cache is bypassed, whatever the
            fetch returned.

        Raises:
            InvalidArgumentError: If no key or no fetch source is given.
            Exception: Any error raised by the fetch, unchanged, unless it is a
                not-found for the one key missing on a partial hit.
        """
        single = isinstance(keys, Key)
        key_list: list[Key] = [keys] if single else list(keys)  # type: ignore[list-item]
        if not key_list:
            raise InvalidArgumentError("At least one Key is required.")

        fetch_fn = fetch or self.owner.default_keys_fetch()

        if self._bypass(cache):
            logger.debug("cache_bypassed", keys=len(key_list))
            return await fetch_fn(key_list)

        dispatcher = self._require_dispatcher()
        resolved_ttl = self._ttl(ttl)
        metrics = self.owner.metrics

        fingerprints = [self.fingerprint(key) for key in key_list]
        raw = await dispatcher.mget(fingerprints, ttl=resolved_ttl)
        cached: dict[str, Any] = {
            fp: value for fp, value in zip(fingerprints, raw, strict=True) if value is not MISSING
        }
        missing_keys = [
            key for key, fp in zip(key_list, fingerprints, strict=True) if fp not in cached
        ]
        metrics.record_lookup(
            hits=len(key_list) - len(missing_keys),
            misses=len(missing_keys),
            negative_hits=sum(1 for value in cached.values() if value is None),
        )

        if not cached:
            logger.debug("cache_miss", keys=len(key_list))
            values = await self._fetch(fetch_fn, key_list, recover_not_found=False)
            await self.owner.prime(fingerprints, values, resolved_ttl)
            cached = dict(zip(fingerprints, values, strict=True))

        elif missing_keys:
            logger.debug("cache_partial_hit", keys=len(key_list), missing=len(missing_keys))
            values = await self._fetch(fetch_fn, missing_keys, recover_not_found=True)
            missing_fps = [self.fingerprint(key) for key in missing_keys]
            await self.owner.prime(missing_fps, values, resolved_ttl)
            cached.update(zip(missing_fps, values, strict=True))

        else:
            logger.debug("cache_hit", keys=len(key_list))

        results = [
            None if cached.get(fp) is None else KeyedEntity(key=key, value=cached[fp])
            for key, fp in zip(key_list, fingerprints, strict=True)
        ]
        return results[0] if single else results

    async def _fetch(
        self,
        fetch_fn: KeysFetch,
        keys: list[Key],
        *,
        recover_not_found: bool,
    ) -> list[Any]:
        """Run the fetch and return values aligned with ``keys``.

        With ``recover_not_found``, a not-found error for a single key
        yields ``[None]`` so the absence gets cached.
        """
        metrics = self.owner.metrics
        try:
            result = await fetch_fn(keys)
        except Exception as e:
            if recover_not_found and len(keys) == 1 and is_not_found(e):
                return self._not_found(keys[0])
            metrics.record_fetch(failed=True)
            logger.error("fetch_failed", keys=len(keys), error=str(e))
            raise

        metrics.record_fetch()
        return self._order(_as_entity_list(result), keys)

    def _not_found(self, key: Key) -> list[Any]:
        self.owner.metrics.record_fetch()
        self.owner.metrics.negative_writes += 1
        logger.debug("cache_negative_entry", fingerprint=self.fingerprint(key))
        return [None]

    async def get(self, key: Key) -> KeyedEntity | None:
        """Cached entity for ``key``; None when absent or cached as absent."""
        return (await self.mget([key]))[0]

    async def mget(self, keys: Iterable[Key]) -> list[KeyedEntity | None]:
        """Cached entities for ``keys``, positional."""
        key_list = list(keys)
        raw = await self._require_dispatcher().mget([self.fingerprint(k) for k in key_list])
        return [
            None if value is MISSING or value is None else KeyedEntity(key=key, value=value)
            for key, value in zip(key_list, raw, strict=True)
        ]

    async def set(self, key: Key, value: Any, *, ttl: TtlOption = None) -> None:
        """Cache ``value`` (an entity dict or ``KeyedEntity``) under ``key``."""
        await self.mset([(key, value)], ttl=ttl)

    async def mset(self, pairs: Iterable[tuple[Key, Any]], *, ttl: TtlOption = None) -> None:
        """Cache several ``(key, value)`` pairs."""
        items = [(self.fingerprint(key), _plain_value(value)) for key, value in pairs]
        await self._require_dispatcher().mset(items, self._ttl(ttl))

    async def delete(self, *keys: Key) -> int:
        """Remove ``keys`` from every tier."""
        return await self._require_dispatcher().delete([self.fingerprint(k) for k in keys])
