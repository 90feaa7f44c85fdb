"""Entity-kind invalidation index.

Queries cached with an infinite TTL have no expiry, so something has to
remove them when the data they were built from changes. For every entity
kind a query touches, its fingerprint is added to a Redis set named
``<queries prefix><Kind>``. Invalidating a kind deletes every fingerprint in
that set together with the set itself.

Example:
    index = EntityKindIndex(redis_client, prefix="gcq:")
    await index.register("gcq:123", encoded_result, ["User"])

    # Later, after a User entity was saved
    await index.invalidate("User")
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from entity_cache.codec import serialize
from entity_cache.errors import NoBackingStoreError

if TYPE_CHECKING:
    from redis.asyncio.client import Redis

logger = structlog.get_logger(__name__)


def _as_list(kinds: str | Iterable[str]) -> list[str]:
    if isinstance(kinds, str):
        return [kinds]
    return list(kinds)


@dataclass
class InvalidationResult:
    """Outcome of an invalidation.

    Attributes:
        fingerprints: Query fingerprints found in the kind sets, de-duplicated.
        deleted: Number of Redis keys removed, set keys included. Informational.
    """

    fingerprints: list[str] = field(default_factory=list)
    deleted: int = 0


class EntityKindIndex:
    """Index from entity kind to the cached queries that depend on it."""

    def __init__(self, client: "Redis | None", prefix: str = "gcq:") -> None:
        """Initialize the index.

        Args:
            client: Redis client, None when no set-capable tier is configured.
            prefix: Prefix of the per-kind set keys.
        """
        self.client = client
        self.prefix = prefix

    def _require_client(self) -> "Redis":
        if self.client is None:
            raise NoBackingStoreError("No Redis Client found.")
        return self.client

    def set_key(self, kind: str) -> str:
        """Redis key of the set holding the fingerprints for ``kind``."""
        return self.prefix + kind

    async def register(
        self,
        fingerprint: str,
        value: Any,
        kinds: str | Iterable[str],
    ) -> list[Any]:
        """Store ``value`` under ``fingerprint`` and index it by kind.

        Every ``SADD`` and the ``SET`` run in a single MULTI/EXEC. The value
        is written without expiry.

        Args:
            fingerprint: Prefixed query fingerprint.
            value: Plain (already encoded) value to store.
            kinds: One kind or several.

        Returns:
            The replies of the transaction.

        Raises:
            NoBackingStoreError: If there is no Redis client.
        """
        client = self._require_client()
        kind_list = _as_list(kinds)

        async with client.pipeline(transaction=True) as pipe:
            for kind in kind_list:
                pipe.sadd(self.set_key(kind), fingerprint)
            pipe.set(fingerprint, serialize(value))
            response: list[Any] = await pipe.execute()

        logger.debug("query_registered", fingerprint=fingerprint, kinds=kind_list)
        return response

    async def members(self, kinds: str | Iterable[str]) -> list[str]:
        """Fingerprints indexed under ``kinds``, de-duplicated, in set order.

        Raises:
            NoBackingStoreError: If there is no Redis client.
        """
        client = self._require_client()
        set_keys = [self.set_key(kind) for kind in _as_list(kinds)]

        async with client.pipeline(transaction=True) as pipe:
            for set_key in set_keys:
                pipe.smembers(set_key)
            replies = await pipe.execute()

        fingerprints: dict[str, None] = {}
        for members in replies:
            for member in members or ():
                name = member.decode() if isinstance(member, bytes) else member
                fingerprints[name] = None
        return list(fingerprints)

    async def invalidate(self, kinds: str | Iterable[str]) -> InvalidationResult:
        """Delete every query cached for ``kinds`` and the kind sets.

        A fingerprint shared by several kinds is deleted once. There is no
        rollback: if the delete fails after the sets were read, the error
        propagates and the sets stay in place.

        Raises:
            NoBackingStoreError: If there is no Redis client.
        """
        client = self._require_client()
        kind_list = _as_list(kinds)
        fingerprints = await self.members(kind_list)

        to_delete = list(dict.fromkeys([*fingerprints, *map(self.set_key, kind_list)]))
        deleted = int(await client.delete(*to_delete)) if to_delete else 0

        logger.info(
            "entity_kinds_invalidated",
            kinds=kind_list,
            queries=len(fingerprints),
            deleted_count=deleted,
        )
        return InvalidationResult(fingerprints=fingerprints, deleted=deleted)
