"""Cache-aside orchestration.

This module contains:
- KeyCache: batched read-through caching of entities by Key
- QueryCache: read-through caching of query results
- EntityKindIndex: Redis sets mapping entity kinds to cached queries
"""

from entity_cache.orchestration.index import EntityKindIndex, InvalidationResult
from entity_cache.orchestration.keys import KeyCache
from entity_cache.orchestration.queries import QueryCache

__all__ = [
    "EntityKindIndex",
    "InvalidationResult",
    "KeyCache",
    "QueryCache",
]
