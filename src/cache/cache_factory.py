# src/cache/cache_factory.py — v3
"""Factory for cache storage instantiation."""

from __future__ import annotations

from pathlib import Path

from staleguard.cache.base_cache_storage import BaseCacheStorage
from staleguard.config.settings import Settings


def create_cache_storage(
    settings: Settings | None = None, root: Path | None = None
) -> BaseCacheStorage:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.
        root: Profile directory overriding settings.cache_root.

    Returns:
        Configured BaseCacheStorage implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend
    if root is None and settings is not None:
        root = settings.cache_root

    if backend == "memory":
        from staleguard.cache.memory_store import MemoryCacheStorage
        return MemoryCacheStorage()

    if root is None:
        raise ValueError(f"CACHE_ROOT must be set when CACHE_BACKEND={backend}")

    if backend == "json":
        from staleguard.cache.json_store import JsonCacheStorage
        return JsonCacheStorage(cache_root=Path(root) / "caches")

    if backend == "sqlite":
        from staleguard.cache.sqlite_store import SqliteCacheStorage
        return SqliteCacheStorage(db_path=Path(root) / "caches.db")

    raise ValueError(f"Unsupported cache backend: {backend!r}")
