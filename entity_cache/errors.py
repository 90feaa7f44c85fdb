"""Error types for the entity cache.

Exception Hierarchy:
    EntityCacheError (base)
    ├── InvalidArgumentError - malformed Key/Query or missing fetch source
    ├── EntityNotFoundError - fetch reported a missing entity
    └── NoBackingStoreError - set operations without a Redis tier

Errors raised by fetch operations and by the backing stores
(``redis.RedisError``) are not wrapped; they propagate to the caller as raised.
"""

from typing import Any

# Error code carried by datastore clients when a single entity lookup misses.
ERR_ENTITY_NOT_FOUND = "ERR_ENTITY_NOT_FOUND"


class EntityCacheError(Exception):
    """Base exception for all entity cache errors.

    Attributes:
        message: Human-readable error message.
        details: Additional error details.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(EntityCacheError):
    """A Key or Query could not be fingerprinted, or a call was malformed."""


class EntityNotFoundError(EntityCacheError):
    """Fetch operation could not find the requested entity.

    Fetch callables raise this (or any exception with a matching ``code``
    attribute) when a single-key lookup resolves to nothing.
    """

    code = ERR_ENTITY_NOT_FOUND


class NoBackingStoreError(EntityCacheError):
    """Entity-kind index used without a set-capable (Redis) tier."""


def is_not_found(error: BaseException) -> bool:
    """Return True if ``error`` signals a missing entity."""
    return isinstance(error, EntityNotFoundError) or (
        getattr(error, "code", None) == ERR_ENTITY_NOT_FOUND
    )
