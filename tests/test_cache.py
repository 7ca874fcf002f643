"""
Tests for NamespacedCache.

Tests cover:
- Compute-on-miss and serve-on-hit
- Caching of None results
- Namespace isolation for evictions
- Failed computations are not stored
- Values computed across an eviction are not stored
- Size bound per namespace
"""

import pytest
from unittest.mock import MagicMock

from messages_api.cache import NamespacedCache


@pytest.fixture
def cache():
    return NamespacedCache(max_size=100, ttl_seconds=600)


class TestGetOrCompute:
    """Test read-through behaviour."""

    def test_computes_on_miss_and_serves_hit(self, cache):
        compute = MagicMock(return_value="value")

        first = cache.get_or_compute("ns", "key", compute)
        second = cache.get_or_compute("ns", "key", compute)

        assert first == "value"
        assert second == "value"
        compute.assert_called_once()

    def test_none_is_cached(self, cache):
        compute = MagicMock(return_value=None)

        assert cache.get_or_compute("ns", 42, compute) is None
        assert cache.get_or_compute("ns", 42, compute) is None
        compute.assert_called_once()

    def test_keys_are_independent(self, cache):
        cache.get_or_compute("ns", 1, lambda: "one")
        cache.get_or_compute("ns", 2, lambda: "two")

        assert cache.get_or_compute("ns", 1, lambda: "other") == "one"
        assert cache.get_or_compute("ns", 2, lambda: "other") == "two"
        assert cache.size("ns") == 2

    def test_exception_propagates_and_is_not_cached(self, cache):
        failing = MagicMock(side_effect=RuntimeError("store down"))

        with pytest.raises(RuntimeError, match="store down"):
            cache.get_or_compute("ns", "key", failing)

        assert cache.get_or_compute("ns", "key", lambda: "recovered") == "recovered"

    def test_size_is_bounded(self):
        cache = NamespacedCache(max_size=2, ttl_seconds=600)

        for key in range(3):
            cache.get_or_compute("ns", key, lambda: "v")

        assert cache.size("ns") == 2


class TestEviction:
    """Test whole-namespace eviction."""

    def test_evict_all_forces_recompute(self, cache):
        compute = MagicMock(return_value="value")
        cache.get_or_compute("ns", "a", compute)
        cache.get_or_compute("ns", "b", compute)

        cache.evict_all("ns")

        assert cache.size("ns") == 0
        cache.get_or_compute("ns", "a", compute)
        assert compute.call_count == 3

    def test_evict_all_leaves_other_namespaces(self, cache):
        cache.get_or_compute("messages", "all", lambda: "list")
        cache.get_or_compute("other", "all", lambda: "kept")

        cache.evict_all("messages")

        assert cache.size("messages") == 0
        assert cache.get_or_compute("other", "all", lambda: "recomputed") == "kept"

    def test_evict_unknown_namespace_is_noop(self, cache):
        cache.evict_all("never-used")
        assert cache.size("never-used") == 0

    def test_clear_evicts_every_namespace(self, cache):
        cache.get_or_compute("a", 1, lambda: "x")
        cache.get_or_compute("b", 1, lambda: "y")

        cache.clear()

        assert cache.size("a") == 0
        assert cache.size("b") == 0

    def test_value_computed_across_eviction_is_not_stored(self, cache):
        """A read that overlaps an eviction returns its value but leaves no entry."""
        def stale_read():
            # An eviction lands while this read is still loading
            cache.evict_all("ns")
            return "stale"

        assert cache.get_or_compute("ns", "all", stale_read) == "stale"
        assert cache.size("ns") == 0
        assert cache.get_or_compute("ns", "all", lambda: "fresh") == "fresh"
