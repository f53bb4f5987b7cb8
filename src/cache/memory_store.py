# src/cache/memory_store.py — v1
"""In-memory cache storage (CACHE_BACKEND=memory).

Lives as long as the owning profile object; used by tests and ephemeral
embedded views.
"""

from __future__ import annotations

from staleguard.cache.base_cache_storage import BaseCacheBucket, BaseCacheStorage
from staleguard.core.models import CachedEntry


class MemoryCacheBucket(BaseCacheBucket):
    """Dict-backed bucket."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self._entries: dict[str, CachedEntry] = {}

    async def keys(self) -> list[str]:
        return list(self._entries)

    async def _load(self, key: str) -> CachedEntry | None:
        return self._entries.get(key)

    async def _store(self, entry: CachedEntry) -> None:
        self._entries[entry.key] = entry

    async def _remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None


class MemoryCacheStorage(BaseCacheStorage):
    """Dict of named in-memory buckets."""

    def __init__(self) -> None:
        self._buckets: dict[str, MemoryCacheBucket] = {}

    async def keys(self) -> list[str]:
        return list(self._buckets)

    async def open(self, name: str) -> MemoryCacheBucket:
        bucket = self._buckets.get(name)
        if bucket is None:
            bucket = MemoryCacheBucket(name)
            self._buckets[name] = bucket
        return bucket

    async def delete(self, name: str) -> bool:
        return self._buckets.pop(name, None) is not None
