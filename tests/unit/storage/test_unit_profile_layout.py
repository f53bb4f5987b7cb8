# tests/unit/storage/test_unit_profile_layout.py — v1
"""Tests for storage/layout.py and storage/profile.py."""

from __future__ import annotations

from pathlib import Path

from staleguard.cache.json_store import JsonCacheStorage
from staleguard.cache.memory_store import MemoryCacheStorage
from staleguard.cache.sqlite_store import SqliteCacheStorage
from staleguard.config.settings import Settings
from staleguard.storage import layout
from staleguard.storage.base_kv_store import MemoryKeyValueStore
from staleguard.storage.databases import SqliteDatabaseRegistry
from staleguard.storage.json_kv_store import JsonKeyValueStore
from staleguard.storage.profile import open_profile


class TestLayout:
    def test_origin_slug(self):
        assert layout.origin_slug("https://a.com:8080") == "https_a.com_8080"

    def test_profile_dir(self, tmp_path):
        assert layout.profile_dir(tmp_path, "http://x.test") == tmp_path / "http_x.test"

    def test_paths(self):
        base = Path("/p")
        assert layout.local_storage_path(base) == base / "local_storage.json"
        assert layout.databases_dir(base) == base / "databases"


class TestOpenProfile:
    def test_memory_profile(self):
        profile = open_profile("https://a.test", Settings(_env_file=None))
        assert isinstance(profile.caches, MemoryCacheStorage)
        assert isinstance(profile.local_storage, MemoryKeyValueStore)
        assert profile.root is None

    def test_durable_profile_with_root(self, tmp_path):
        profile = open_profile("https://a.test", Settings(_env_file=None), root=tmp_path)
        assert profile.root == tmp_path / "https_a.test"
        assert isinstance(profile.caches, JsonCacheStorage)
        assert isinstance(profile.local_storage, JsonKeyValueStore)
        assert isinstance(profile.session_storage, MemoryKeyValueStore)
        assert isinstance(profile.databases, SqliteDatabaseRegistry)

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="sqlite")
        profile = open_profile("https://a.test", s, root=tmp_path)
        assert isinstance(profile.caches, SqliteCacheStorage)
        profile.caches.close()

    def test_settings_root(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="json", cache_root=tmp_path)
        profile = open_profile("https://a.test", s)
        assert profile.root == tmp_path / "https_a.test"
