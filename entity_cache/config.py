"""Cache configuration.

Two layers:
- ``Settings``: process settings loaded from environment variables.
- ``CacheConfig``: store topology, TTLs, key prefixes and the global
  opt-in/opt-out flag consumed by the orchestrators.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal

DataType = Literal["keys", "queries"]
StoreType = Literal["memory", "redis"]


def _get_bool_env(name: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable.

    Args:
        name: Environment variable name.
        default: Default value if not set.

    Returns:
        Boolean value from environment.
    """
    value = os.getenv(name, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


@dataclass
class Settings:
    """Settings loaded from environment variables.

    Attributes:
        ENTITY_CACHE_GLOBAL: Cache every call unless it opts out.
        ENTITY_CACHE_KEYS_TTL: Default TTL for keys, in seconds.
        ENTITY_CACHE_QUERIES_TTL: Default TTL for queries, in seconds.
        ENTITY_CACHE_MEMORY_MAX: Max entries of the in-process tier.
        REDIS_URL: Redis connection URL. Adds a Redis tier when set.
    """

    ENTITY_CACHE_GLOBAL: bool = True
    ENTITY_CACHE_KEYS_TTL: int = 60 * 10
    ENTITY_CACHE_QUERIES_TTL: int = 60
    ENTITY_CACHE_MEMORY_MAX: int = 100
    REDIS_URL: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            ENTITY_CACHE_GLOBAL=_get_bool_env("ENTITY_CACHE_GLOBAL", default=True),
            ENTITY_CACHE_KEYS_TTL=_get_int_env("ENTITY_CACHE_KEYS_TTL", 60 * 10),
            ENTITY_CACHE_QUERIES_TTL=_get_int_env("ENTITY_CACHE_QUERIES_TTL", 60),
            ENTITY_CACHE_MEMORY_MAX=_get_int_env("ENTITY_CACHE_MEMORY_MAX", 100),
            REDIS_URL=os.getenv("REDIS_URL") or None,
        )


@dataclass
class StoreConfig:
    """One backing tier.

    Attributes:
        name: Tier name, used to look up per-tier TTLs.
        type: ``memory`` (in-process, bounded) or ``redis``.
        max_size: Max entries for a memory tier.
        url: Connection URL for a redis tier.
    """

    name: str
    type: StoreType = "memory"
    max_size: int = 100
    url: str | None = None


def _default_tier_ttls() -> dict[str, dict[str, int]]:
    return {
        "memory": {"keys": 60 * 5, "queries": 60},
        "redis": {"keys": 60 * 60 * 24, "queries": 60 * 60},
    }


@dataclass
class TtlConfig:
    """Default TTLs, in seconds.

    Attributes:
        keys: TTL for entities cached by key.
        queries: TTL for query results. -1 disables query caching.
        tiers: Per tier overrides, ``{tier_name: {"keys": .., "queries": ..}}``.
            Used when more than one tier is configured. A ``queries`` TTL of
            0 on the redis tier caches queries until their kinds are
            invalidated.
    """

    keys: int = 60 * 10
    queries: int = 60
    tiers: dict[str, dict[str, int]] = field(default_factory=_default_tier_ttls)

    def for_type(self, data_type: DataType) -> int:
        """Scalar TTL for a data type."""
        return self.keys if data_type == "keys" else self.queries


@dataclass
class CachePrefix:
    """Prefixes that keep key and query fingerprints apart."""

    keys: str = "gck:"
    queries: str = "gcq:"


def _default_stores() -> list[StoreConfig]:
    return [StoreConfig(name="memory", type="memory", max_size=100)]


@dataclass
class CacheConfig:
    """Configuration for an ``EntityCache``.

    Attributes:
        stores: Ordered tiers, fastest first.
        ttl: Default and per tier TTLs.
        cache_prefix: Fingerprint prefixes per data type.
        global_cache: When False, calls must pass ``cache=True`` to be cached.
    """

    stores: list[StoreConfig] = field(default_factory=_default_stores)
    ttl: TtlConfig = field(default_factory=TtlConfig)
    cache_prefix: CachePrefix = field(default_factory=CachePrefix)
    global_cache: bool = True

    @classmethod
    def from_dict(cls, overrides: Mapping[str, Any] | None = None) -> "CacheConfig":
        """Merge overrides onto the defaults.

        Top-level keys replace the default wholesale. ``ttl``,
        ``cache_prefix`` and ``stores`` entries may be given as mappings.
        ``global`` is accepted as an alias of ``global_cache``.
        """
        config = cls()
        if not overrides:
            return config

        values = dict(overrides)
        if "global" in values:
            values["global_cache"] = values.pop("global")

        if "stores" in values:
            values["stores"] = [
                s if isinstance(s, StoreConfig) else StoreConfig(**s) for s in values["stores"]
            ]
        if isinstance(values.get("ttl"), Mapping):
            values["ttl"] = TtlConfig(**values["ttl"])
        if isinstance(values.get("cache_prefix"), Mapping):
            values["cache_prefix"] = CachePrefix(**values["cache_prefix"])

        return replace(config, **values)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheConfig":
        """Build a config from environment settings."""
        stores = [
            StoreConfig(name="memory", type="memory", max_size=settings.ENTITY_CACHE_MEMORY_MAX)
        ]
        if settings.REDIS_URL:
            stores.append(StoreConfig(name="redis", type="redis", url=settings.REDIS_URL))

        return cls(
            stores=stores,
            ttl=TtlConfig(
                keys=settings.ENTITY_CACHE_KEYS_TTL,
                queries=settings.ENTITY_CACHE_QUERIES_TTL,
            ),
            global_cache=settings.ENTITY_CACHE_GLOBAL,
        )

