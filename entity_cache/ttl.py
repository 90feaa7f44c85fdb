"""TTL resolution.

A TTL is either one duration for every tier (``ScalarTtl``) or a duration
per tier name (``PerTierTtl``). Tiers ask the resolved value for their own
duration through ``for_tier``.

Special values:
- ``-1`` as a scalar query TTL disables caching for the call.
- ``0`` for the set-capable tier retains query results until their entity
  kinds are invalidated.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from entity_cache.config import CacheConfig, DataType

NO_CACHE = -1
INFINITE = 0


@dataclass(frozen=True)
class ScalarTtl:
    """Same duration for every tier."""

    seconds: int

    def for_tier(self, tier_name: str) -> int:  # noqa: ARG002
        return self.seconds


@dataclass(frozen=True)
class PerTierTtl:
    """Duration looked up by tier name.

    Attributes:
        mapping: ``{tier_name: seconds}``.
        default: Used for tiers missing from the mapping.
    """

    mapping: Mapping[str, int] = field(default_factory=dict)
    default: int | None = None

    def for_tier(self, tier_name: str) -> int | None:
        return self.mapping.get(tier_name, self.default)


Ttl = ScalarTtl | PerTierTtl


def resolve_ttl(
    data_type: DataType,
    config: CacheConfig,
    tier_names: Sequence[str],
    override: int | Mapping[str, int] | None = None,
) -> Ttl:
    """Resolve the TTL for a cache write.

    Precedence:
    1. A per-tier mapping passed by the caller.
    2. A scalar passed by the caller, used verbatim.
    3. With more than one tier, the configured per-tier TTLs.
    4. The configured scalar TTL for the data type.

    Args:
        data_type: ``keys`` or ``queries``.
        config: Cache configuration.
        tier_names: Names of the configured tiers, in order.
        override: Call-site ``ttl`` option.

    Returns:
        The resolved TTL.
    """
    default = config.ttl.for_type(data_type)

    if isinstance(override, Mapping):
        return PerTierTtl(mapping=dict(override), default=default)

    if override is not None:
        return ScalarTtl(override)

    if len(tier_names) > 1:
        mapping = {
            name: config.ttl.tiers[name][data_type]
            for name in tier_names
            if data_type in config.ttl.tiers.get(name, {})
        }
        return PerTierTtl(mapping=mapping, default=default)

    return ScalarTtl(default)


def disables_cache(ttl: Ttl) -> bool:
    """True when the resolved TTL turns caching off for the call."""
    return isinstance(ttl, ScalarTtl) and ttl.seconds == NO_CACHE


def is_infinite(ttl: Ttl, tier_name: str) -> bool:
    """True when ``tier_name`` should keep entries until invalidated."""
    return ttl.for_tier(tier_name) == INFINITE
