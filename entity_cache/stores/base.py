"""Common interface of the cache tiers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Final


class _Missing:
    """Marker for "no entry", as opposed to a cached ``None``."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class CacheTier(ABC):
    """One physical cache layer.

    Attributes:
        name: Tier name, used to pick a per-tier TTL.
        supports_sets: Whether the tier exposes a Redis client for set
            commands (used by the entity-kind index).
    """

    supports_sets: bool = False

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the entry for ``key`` or ``MISSING``."""

    async def mget(self, keys: Sequence[str]) -> list[Any]:
        """Return entries for ``keys``, ``MISSING`` where absent."""
        return [await self.get(key) for key in keys]

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None) -> None:
        """Store ``value``. A ``ttl`` of None or <= 0 never expires."""

    async def mset(self, items: Sequence[tuple[str, Any]], ttl: int | None) -> None:
        for key, value in items:
            await self.set(key, value, ttl)

    @abstractmethod
    async def delete(self, keys: Sequence[str]) -> int:
        """Delete ``keys``. Returns the number of entries removed."""

    @abstractmethod
    async def reset(self) -> None:
        """Drop every entry."""

    async def close(self) -> None:
        """Release connections held by the tier."""
