"""Tests for facts/cache.py - content-keyed fact caches."""

import pytest

from modgraph.exceptions import ParsingError
from modgraph.facts import (
    CachingExtractor,
    DiskFactCache,
    ExportFact,
    FileFacts,
    LRUFactCache,
    RegexFactExtractor,
    fact_cache_key,
)


def _facts(path: str) -> FileFacts:
    return FileFacts(path=path, exports=[ExportFact(module=path, name="x")])


class CountingExtractor:
    def __init__(self):
        self.calls = 0
        self.inner = RegexFactExtractor()

    def extract(self, path, content):
        self.calls += 1
        return self.inner.extract(path, content)


class TestCacheKey:
    def test_same_input_same_key(self):
        assert fact_cache_key("/p/a.ts", "x") == fact_cache_key("/p/a.ts", "x")

    def test_content_changes_key(self):
        assert fact_cache_key("/p/a.ts", "x") != fact_cache_key("/p/a.ts", "y")

    def test_path_changes_key(self):
        assert fact_cache_key("/p/a.ts", "x") != fact_cache_key("/p/b.ts", "x")

    def test_separator_prevents_collisions(self):
        assert fact_cache_key("/p/ab", "c") != fact_cache_key("/p/a", "bc")


class TestLRUFactCache:
    def test_get_miss_then_hit(self):
        cache = LRUFactCache(capacity=2)
        assert cache.get("k") is None
        cache.set("k", _facts("/p/a.ts"))
        assert cache.get("k").path == "/p/a.ts"
        assert cache.hits == 1
        assert cache.misses == 1

    def test_evicts_least_recently_used(self):
        cache = LRUFactCache(capacity=2)
        cache.set("a", _facts("/p/a.ts"))
        cache.set("b", _facts("/p/b.ts"))
        cache.get("a")
        cache.set("c", _facts("/p/c.ts"))

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2
        assert cache.evictions == 1

    def test_stats(self):
        cache = LRUFactCache(capacity=4)
        cache.set("a", _facts("/p/a.ts"))
        cache.get("a")
        cache.get("missing")
        stats = cache.stats()
        assert stats["kind"] == "lru"
        assert stats["size"] == 1
        assert stats["capacity"] == 4
        assert stats["hitRate"] == 0.5

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            LRUFactCache(capacity=0)

    def test_clear(self):
        cache = LRUFactCache()
        cache.set("a", _facts("/p/a.ts"))
        cache.clear()
        assert len(cache) == 0


class TestDiskFactCache:
    def test_round_trip(self, tmp_path):
        cache = DiskFactCache(str(tmp_path / "cache"), ttl_hours=1)
        try:
            cache.set("k", _facts("/p/a.ts"))
            restored = cache.get("k")
            assert restored.path == "/p/a.ts"
            assert restored.exports[0].name == "x"
            assert cache.get("other") is None
            stats = cache.stats()
            assert stats["kind"] == "disk"
            assert stats["hits"] == 1
            assert stats["misses"] == 1
        finally:
            cache.close()

    def test_persists_across_instances(self, tmp_path):
        first = DiskFactCache(str(tmp_path / "cache"))
        first.set("k", _facts("/p/a.ts"))
        first.close()

        second = DiskFactCache(str(tmp_path / "cache"))
        try:
            assert second.get("k") is not None
        finally:
            second.close()


class TestCachingExtractor:
    def test_unchanged_content_is_extracted_once(self):
        inner = CountingExtractor()
        extractor = CachingExtractor(inner, LRUFactCache())
        extractor.extract("/p/a.ts", "export const a = 1;\n")
        facts = extractor.extract("/p/a.ts", "export const a = 1;\n")
        assert inner.calls == 1
        assert facts.exports[0].name == "a"

    def test_changed_content_is_extracted_again(self):
        inner = CountingExtractor()
        extractor = CachingExtractor(inner, LRUFactCache())
        extractor.extract("/p/a.ts", "export const a = 1;\n")
        facts = extractor.extract("/p/a.ts", "export const b = 1;\n")
        assert inner.calls == 2
        assert facts.exports[0].name == "b"

    def test_failures_are_not_cached(self):
        cache = LRUFactCache()
        extractor = CachingExtractor(RegexFactExtractor(), cache)
        with pytest.raises(ParsingError):
            extractor.extract("/p/bad.ts", "\x00")
        assert len(cache) == 0
