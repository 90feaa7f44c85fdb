"""Read-through caching for datastore entities and queries.

This module contains:
- EntityCache facade with its key and query orchestrators
- Key / Query / KeyedEntity / QueryResult models
- Cache configuration and TTL resolution
- Memory and Redis tiers behind a multi-tier dispatcher
"""

from entity_cache.cache import EntityCache
from entity_cache.config import CacheConfig, CachePrefix, Settings, StoreConfig, TtlConfig
from entity_cache.errors import (
    ERR_ENTITY_NOT_FOUND,
    EntityCacheError,
    EntityNotFoundError,
    InvalidArgumentError,
    NoBackingStoreError,
)
from entity_cache.fingerprint import key_to_string, query_to_string
from entity_cache.metrics import CacheMetrics
from entity_cache.models import DatastoreClient, Filter, Key, KeyedEntity, Order, Query, QueryResult
from entity_cache.stores import MISSING, MemoryTier, MultiTierCache, RedisTier
from entity_cache.ttl import PerTierTtl, ScalarTtl, Ttl, resolve_ttl

__all__ = [
    # Facade
    "EntityCache",
    # Configuration
    "CacheConfig",
    "CachePrefix",
    "Settings",
    "StoreConfig",
    "TtlConfig",
    # Errors
    "ERR_ENTITY_NOT_FOUND",
    "EntityCacheError",
    "EntityNotFoundError",
    "InvalidArgumentError",
    "NoBackingStoreError",
    # Models
    "DatastoreClient",
    "Filter",
    "Key",
    "KeyedEntity",
    "Order",
    "Query",
    "QueryResult",
    # Fingerprints and TTL
    "key_to_string",
    "query_to_string",
    "PerTierTtl",
    "ScalarTtl",
    "Ttl",
    "resolve_ttl",
    # Stores
    "MISSING",
    "MemoryTier",
    "MultiTierCache",
    "RedisTier",
    # Metrics
    "CacheMetrics",
]
