# src/storage/profile.py — v1
"""BrowserProfile: the durable layers shared by page and worker contexts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from staleguard.cache.base_cache_storage import BaseCacheStorage
from staleguard.cache.cache_factory import create_cache_storage
from staleguard.cache.memory_store import MemoryCacheStorage
from staleguard.config.settings import Settings
from staleguard.storage import layout
from staleguard.storage.base_kv_store import BaseKeyValueStore, MemoryKeyValueStore
from staleguard.storage.databases import (
    BaseDatabaseRegistry,
    MemoryDatabaseRegistry,
    SqliteDatabaseRegistry,
)
from staleguard.storage.json_kv_store import JsonKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class BrowserProfile:
    """Per-origin client state.

    Cache buckets and local storage are the only surfaces both the page and
    the worker may write. Session storage is scoped to one page lifetime.
    """

    origin: str
    caches: BaseCacheStorage = field(default_factory=MemoryCacheStorage)
    local_storage: BaseKeyValueStore = field(default_factory=MemoryKeyValueStore)
    session_storage: BaseKeyValueStore = field(default_factory=MemoryKeyValueStore)
    databases: BaseDatabaseRegistry = field(default_factory=MemoryDatabaseRegistry)
    root: Path | None = None


def open_profile(
    origin: str, settings: Settings | None = None, root: Path | None = None
) -> BrowserProfile:
    """Build a profile for an origin.

    With no root (and no settings root for a durable backend) every layer is
    in-memory. Otherwise caches, local storage and databases live under
    ``layout.profile_dir(root, origin)``.
    """
    settings = settings or Settings(_env_file=None)  # type: ignore[call-arg]
    if root is None and settings.cache_backend == "memory":
        return BrowserProfile(origin=origin)

    base = layout.profile_dir(root or settings.cache_root, origin)
    base.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening profile for %s at %s", origin, base)

    backend_settings = settings
    if settings.cache_backend == "memory":
        backend_settings = settings.model_copy(update={"cache_backend": "json"})

    return BrowserProfile(
        origin=origin,
        caches=create_cache_storage(backend_settings, root=base),
        local_storage=JsonKeyValueStore(layout.local_storage_path(base)),
        session_storage=MemoryKeyValueStore(),
        databases=SqliteDatabaseRegistry(layout.databases_dir(base)),
        root=base,
    )
