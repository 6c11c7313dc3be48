"""Tests for the summary cache."""

from datetime import datetime, timedelta, timezone

import pytest

from cellar_ai.services.summary_cache import SummaryCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


class TestSummaryCache:
    """Test suite for SummaryCache."""

    def test_get_returns_stored_value(self, clock):
        cache = SummaryCache(clock=clock)
        cache.set("filterWines:abc", "Found 3 reds.")

        assert cache.get("filterWines:abc") == "Found 3 reds."
        assert cache.stats()["hits"] == 1

    def test_miss_is_counted(self, clock):
        cache = SummaryCache(clock=clock)

        assert cache.get("filterWines:missing") is None
        assert cache.stats()["misses"] == 1

    def test_entries_expire_after_ttl(self, clock):
        cache = SummaryCache(ttl_seconds=60, clock=clock)
        cache.set("filterWines:abc", "Found 3 reds.")

        clock.advance(59)
        assert cache.get("filterWines:abc") == "Found 3 reds."

        clock.advance(2)
        assert cache.get("filterWines:abc") is None
        assert len(cache) == 0

    def test_no_ttl_never_expires(self, clock):
        cache = SummaryCache(ttl_seconds=None, clock=clock)
        cache.set("filterWines:abc", "Found 3 reds.")

        clock.advance(10 ** 7)

        assert cache.get("filterWines:abc") == "Found 3 reds."

    def test_evicts_least_recently_used(self, clock):
        cache = SummaryCache(max_entries=2, clock=clock)
        cache.set("a:1", "one")
        cache.set("a:2", "two")
        cache.get("a:1")
        cache.set("a:3", "three")

        assert cache.get("a:2") is None
        assert cache.get("a:1") == "one"
        assert cache.get("a:3") == "three"
        assert cache.stats()["evictions"] == 1

    def test_overwriting_key_does_not_grow(self, clock):
        cache = SummaryCache(max_entries=2, clock=clock)
        cache.set("a:1", "one")
        cache.set("a:1", "uno")

        assert len(cache) == 1
        assert cache.get("a:1") == "uno"

    def test_invalidate_single_key(self, clock):
        cache = SummaryCache(clock=clock)
        cache.set("a:1", "one")

        assert cache.invalidate("a:1") is True
        assert cache.invalidate("a:1") is False

    def test_invalidate_tool_uses_key_prefix(self, clock):
        cache = SummaryCache(clock=clock)
        cache.set("filterWines:1", "one")
        cache.set("filterWines:2", "two")
        cache.set("analyzeValue:1", "three")

        assert cache.invalidate_tool("filterWines") == 2
        assert len(cache) == 1
        assert cache.get("analyzeValue:1") == "three"

    def test_clear(self, clock):
        cache = SummaryCache(clock=clock)
        cache.set("a:1", "one")
        cache.set("b:1", "two")

        assert cache.clear() == 2
        assert cache.stats()["entries"] == 0

    def test_instances_are_independent(self, clock):
        first = SummaryCache(clock=clock)
        second = SummaryCache(clock=clock)
        first.set("a:1", "one")

        assert second.get("a:1") is None

    @pytest.mark.parametrize("max_entries", [0, -5])
    def test_rejects_non_positive_capacity(self, max_entries):
        with pytest.raises(ValueError):
            SummaryCache(max_entries=max_entries)
