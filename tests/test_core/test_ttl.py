"""Tests for TTL resolution."""

from entity_cache.config import CacheConfig, TtlConfig
from entity_cache.ttl import (
    PerTierTtl,
    ScalarTtl,
    disables_cache,
    is_infinite,
    resolve_ttl,
)


class TestResolveTtl:
    """Tests for resolve_ttl precedence."""

    def test_single_tier_uses_configured_scalar(self) -> None:
        """Test one tier resolves to the data type default."""
        config = CacheConfig()
        assert resolve_ttl("keys", config, ["memory"]) == ScalarTtl(600)
        assert resolve_ttl("queries", config, ["memory"]) == ScalarTtl(60)

    def test_scalar_override_wins(self) -> None:
        """Test a call-site scalar is used verbatim."""
        config = CacheConfig()
        assert resolve_ttl("keys", config, ["memory"], override=5) == ScalarTtl(5)
        assert resolve_ttl("keys", config, ["memory", "redis"], override=5) == ScalarTtl(5)

    def test_multi_tier_returns_per_tier(self) -> None:
        """Test several tiers resolve to a per-tier TTL."""
        ttl = resolve_ttl("queries", CacheConfig(), ["memory", "redis"])
        assert isinstance(ttl, PerTierTtl)
        assert ttl.for_tier("memory") == 60
        assert ttl.for_tier("redis") == 3600

    def test_multi_tier_custom_values(self) -> None:
        """Test per-tier values come from the tiers config."""
        config = CacheConfig(
            ttl=TtlConfig(tiers={"memory": {"queries": 1357}, "redis": {"queries": 2468}})
        )
        ttl = resolve_ttl("queries", config, ["memory", "redis"])
        assert ttl.for_tier("memory") == 1357
        assert ttl.for_tier("redis") == 2468

    def test_multi_tier_unknown_tier_falls_back(self) -> None:
        """Test a tier without per-tier TTL gets the scalar default."""
        ttl = resolve_ttl("keys", CacheConfig(), ["memory", "disk"])
        assert ttl.for_tier("disk") == 600

    def test_mapping_override(self) -> None:
        """Test a call-site mapping selects by tier name."""
        ttl = resolve_ttl("keys", CacheConfig(), ["memory"], override={"memory": 7, "redis": 9})
        assert isinstance(ttl, PerTierTtl)
        assert ttl.for_tier("memory") == 7
        assert ttl.for_tier("redis") == 9


class TestTtlHelpers:
    """Tests for the sentinel helpers."""

    def test_minus_one_disables_cache(self) -> None:
        """Test -1 scalar turns caching off."""
        assert disables_cache(ScalarTtl(-1))
        assert not disables_cache(ScalarTtl(0))
        assert not disables_cache(PerTierTtl({"memory": -1}))

    def test_zero_on_tier_is_infinite(self) -> None:
        """Test 0 for a tier marks it infinite."""
        ttl = PerTierTtl({"memory": 60, "redis": 0})
        assert is_infinite(ttl, "redis")
        assert not is_infinite(ttl, "memory")
        assert is_infinite(ScalarTtl(0), "redis")
