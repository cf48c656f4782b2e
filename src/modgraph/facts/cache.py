"""
Fact caches.

Caches are explicit objects handed to the components that extract facts;
nothing is cached at module level. Keys combine the file path and a hash of
its content, so a file whose content differs between two refs never reuses
the other ref's facts.

Two implementations share one interface:
- ``LRUFactCache``: in-memory, fixed capacity, evicts the least recently
  touched entry.
- ``DiskFactCache``: SQLite-backed via diskcache with TTL expiry, for reuse
  across runs.
"""

from __future__ import annotations

import hashlib
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from diskcache import Cache

from ..logging_config import get_logger
from .extractor import FactExtractor
from .models import FileFacts

logger = get_logger(__name__)


def fact_cache_key(path: str, content: str) -> str:
    """Cache key for the facts of ``path`` with the given ``content``."""
    digest = hashlib.sha256()
    digest.update(path.encode("utf-8", "surrogatepass"))
    digest.update(b"\0")
    digest.update(content.encode("utf-8", "surrogatepass"))
    return digest.hexdigest()


class FactCache(Protocol):
    """Minimal cache interface used by ``CachingExtractor``."""

    def get(self, key: str) -> Optional[FileFacts]: ...

    def set(self, key: str, value: FileFacts) -> None: ...

    def stats(self) -> dict[str, Any]: ...

    def close(self) -> None: ...


class LRUFactCache:
    """In-memory LRU cache with a fixed capacity."""

    def __init__(self, capacity: int = 1024):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, FileFacts] = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[FileFacts]:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def set(self, key: str, value: FileFacts) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = value
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)
            self.evictions += 1

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def stats(self) -> dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "kind": "lru",
            "size": len(self._entries),
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hitRate": round(self.hits / lookups, 3) if lookups else 0.0,
        }

    def close(self) -> None:
        pass


class DiskFactCache:
    """
    SQLite-based persistent fact cache.

    Failures of the underlying store are logged and treated as misses so a
    broken cache directory never fails an analysis.
    """

    def __init__(self, cache_dir: str = ".modgraph-cache", ttl_hours: int = 24):
        self.ttl_seconds = ttl_hours * 3600
        self.cache = Cache(cache_dir)
        self.hits = 0
        self.misses = 0
        logger.debug("Fact cache initialized at %s with TTL=%dh", cache_dir, ttl_hours)

    def get(self, key: str) -> Optional[FileFacts]:
        try:
            value = self.cache.get(key)
        except Exception as e:
            logger.warning("Cache get failed: %s", e)
            value = None
        if value is None:
            self.misses += 1
            return None
        self.hits += 1
        return value

    def set(self, key: str, value: FileFacts) -> None:
        try:
            self.cache.set(key, value, expire=self.ttl_seconds or None)
        except Exception as e:
            logger.warning("Cache set failed: %s", e)

    def clear(self) -> None:
        try:
            self.cache.clear()
            logger.info("Fact cache cleared")
        except Exception as e:
            logger.warning("Cache clear failed: %s", e)

    def stats(self) -> dict[str, Any]:
        try:
            return {
                "kind": "disk",
                "size": len(self.cache),
                "directory": self.cache.directory,
                "hits": self.hits,
                "misses": self.misses,
            }
        except Exception as e:
            logger.warning("Cache stats failed: %s", e)
            return {"kind": "disk", "error": str(e)}

    def close(self) -> None:
        self.cache.close()


@dataclass
class CachingExtractor:
    """Wraps a ``FactExtractor`` with a fact cache.

    Extraction errors are never cached; the next call retries the file.
    """

    extractor: FactExtractor
    cache: FactCache

    def extract(self, path: str, content: str) -> FileFacts:
        key = fact_cache_key(path, content)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        facts = self.extractor.extract(path, content)
        self.cache.set(key, facts)
        return facts
