"""Tests for the multi-tier dispatcher."""

import pytest

from entity_cache.stores import MISSING, MemoryTier, MultiTierCache, RedisTier
from entity_cache.ttl import PerTierTtl, ScalarTtl


@pytest.fixture
def memory() -> MemoryTier:
    """Create a memory tier."""
    return MemoryTier()


@pytest.fixture
def redis_tier(fake_redis) -> RedisTier:
    """Create a Redis tier over the fake client."""
    return RedisTier(fake_redis)


@pytest.fixture
def dispatcher(memory: MemoryTier, redis_tier: RedisTier) -> MultiTierCache:
    """Create a memory + Redis dispatcher."""
    return MultiTierCache([memory, redis_tier])


class TestMultiTierCache:
    """Tests for MultiTierCache."""

    def test_needs_a_tier(self) -> None:
        """Test an empty tier list is rejected."""
        with pytest.raises(ValueError):
            MultiTierCache([])

    def test_set_capable_tier(self, dispatcher, redis_tier) -> None:
        """Test the Redis tier is found for set commands."""
        assert dispatcher.tier_names == ["memory", "redis"]
        assert dispatcher.set_capable_tier() is redis_tier
        assert MultiTierCache([MemoryTier()]).set_capable_tier() is None

    @pytest.mark.asyncio
    async def test_mset_uses_per_tier_ttl(self, dispatcher, fake_redis) -> None:
        """Test each tier gets its own TTL."""
        await dispatcher.mset([("gck:1", {"a": 1})], PerTierTtl({"memory": 5, "redis": 500}))
        assert fake_redis.expirations["gck:1"] == 500
        assert await dispatcher.get("gck:1") == {"a": 1}

    @pytest.mark.asyncio
    async def test_first_tier_wins(self, dispatcher, memory, redis_tier) -> None:
        """Test reads stop at the fastest tier holding the key."""
        await memory.set("k", "fast", ttl=60)
        await redis_tier.set("k", "slow", ttl=60)
        assert await dispatcher.get("k") == "fast"

    @pytest.mark.asyncio
    async def test_backfills_faster_tier(self, dispatcher, memory, redis_tier) -> None:
        """Test a hit in Redis is copied into memory when a TTL is given."""
        await redis_tier.set("k", {"v": 1}, ttl=60)
        assert await dispatcher.mget(["k", "other"], ttl=ScalarTtl(30)) == [{"v": 1}, MISSING]
        assert await memory.get("k") == {"v": 1}
        assert await memory.get("other") is MISSING

    @pytest.mark.asyncio
    async def test_no_backfill_without_ttl(self, dispatcher, memory, redis_tier) -> None:
        """Test plain reads leave faster tiers untouched."""
        await redis_tier.set("k", 1, ttl=60)
        assert await dispatcher.get("k") == 1
        assert await memory.get("k") is MISSING

    @pytest.mark.asyncio
    async def test_delete_all_tiers(self, dispatcher, memory, fake_redis) -> None:
        """Test delete removes the key from every tier."""
        await dispatcher.set("k", 1, ScalarTtl(60))
        assert await dispatcher.delete(["k"]) == 1
        assert await memory.get("k") is MISSING
        assert "k" not in fake_redis.strings

    @pytest.mark.asyncio
    async def test_reset_and_close(self, dispatcher, memory, fake_redis) -> None:
        """Test reset and close reach every tier."""
        await dispatcher.set("k", 1, ScalarTtl(60))
        await dispatcher.reset()
        assert len(memory) == 0
        assert fake_redis.strings == {}
        await dispatcher.close()
        assert fake_redis.closed is True
