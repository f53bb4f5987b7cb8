# src/cache/base_cache_storage.py — v2
"""Abstract cache storage interface: named buckets of request/response pairs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from staleguard.core.models import (
    CachedEntry,
    CacheGeneration,
    FetchRequest,
    ResponseSnapshot,
)


class BaseCacheBucket(ABC):
    """One named bucket (a cache generation for one worker version)."""

    def __init__(self, name: str) -> None:
        self.name = name

    async def match(self, request: FetchRequest) -> CachedEntry | None:
        """Return the entry stored under the request key, if any."""
        return await self._load(request.key)

    async def put(
        self,
        request: FetchRequest,
        response: ResponseSnapshot,
        generation: CacheGeneration,
    ) -> CachedEntry:
        """Store (or overwrite) a successful response.

        Raises:
            ValueError: If the response status is not 2xx.
        """
        if not response.ok:
            raise ValueError(
                f"Refusing to cache {request.key} with status {response.status}"
            )
        entry = CachedEntry(
            key=request.key,
            request=request,
            response=response,
            generation=generation,
        )
        await self._store(entry)
        return entry

    async def delete(self, request: FetchRequest) -> bool:
        """Remove the entry for a request. Returns True if one existed."""
        return await self._remove(request.key)

    @abstractmethod
    async def keys(self) -> list[str]:
        """List request keys stored in this bucket."""

    @abstractmethod
    async def _load(self, key: str) -> CachedEntry | None:
        """Read an entry by request key."""

    @abstractmethod
    async def _store(self, entry: CachedEntry) -> None:
        """Write an entry, replacing any previous one."""

    @abstractmethod
    async def _remove(self, key: str) -> bool:
        """Delete an entry by request key."""


class BaseCacheStorage(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """List bucket names in creation order."""

    @abstractmethod
    async def open(self, name: str) -> BaseCacheBucket:
        """Open a bucket, creating it if missing."""

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete a bucket. Returns True if it existed."""

    async def has(self, name: str) -> bool:
        return name in await self.keys()

    async def match(self, request: FetchRequest) -> CachedEntry | None:
        """Search every bucket for the request key."""
        for name in await self.keys():
            bucket = await self.open(name)
            entry = await bucket.match(request)
            if entry is not None:
                return entry
        return None
