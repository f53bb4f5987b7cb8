# src/cache/json_store.py — v2
"""JSON file-based cache storage (CACHE_BACKEND=json).

One directory per bucket under CACHE_ROOT, one JSON file per entry named
by the SHA-256 of the request key. Bodies are base64-encoded.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from pathlib import Path

from staleguard.cache.base_cache_storage import BaseCacheBucket, BaseCacheStorage
from staleguard.core.models import CachedEntry

logger = logging.getLogger(__name__)

_ORDER_FILE = "__buckets__.json"


class JsonCacheBucket(BaseCacheBucket):
    """Directory-backed bucket."""

    def __init__(self, name: str, root: Path) -> None:
        super().__init__(name)
        self._dir = root

    async def keys(self) -> list[str]:
        keys: list[str] = []
        if not self._dir.is_dir():
            return keys
        for path in sorted(self._dir.glob("*.json")):
            try:
                keys.append(CachedEntry.from_json(path.read_text(encoding="utf-8")).key)
            except Exception as e:
                logger.warning("Skipping unreadable cache entry %s: %s", path, e)
        return keys

    async def _load(self, key: str) -> CachedEntry | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            return CachedEntry.from_json(path.read_text(encoding="utf-8"))
        except Exception as e:
            logger.warning("Failed to read cache entry %s: %s", key, e)
            return None

    async def _store(self, entry: CachedEntry) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._entry_path(entry.key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(entry.to_json(), encoding="utf-8")
        tmp.replace(path)

    async def _remove(self, key: str) -> bool:
        path = self._entry_path(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def _entry_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._dir / f"{digest}.json"


class JsonCacheStorage(BaseCacheStorage):
    """File-based cache storage using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def keys(self) -> list[str]:
        order = self._read_order()
        present = {p.name for p in self._root.iterdir() if p.is_dir()}
        return [name for name in order if name in present]

    async def open(self, name: str) -> JsonCacheBucket:
        bucket_dir = self._bucket_dir(name)
        if not bucket_dir.is_dir():
            bucket_dir.mkdir(parents=True, exist_ok=True)
            order = self._read_order()
            if name not in order:
                order.append(name)
                self._write_order(order)
        return JsonCacheBucket(name, bucket_dir)

    async def delete(self, name: str) -> bool:
        bucket_dir = self._bucket_dir(name)
        existed = bucket_dir.is_dir()
        if existed:
            shutil.rmtree(bucket_dir)
        order = self._read_order()
        if name in order:
            order.remove(name)
            self._write_order(order)
        return existed

    def _bucket_dir(self, name: str) -> Path:
        safe_name = name.replace("/", "_").replace("\\", "_")
        return self._root / safe_name

    def _read_order(self) -> list[str]:
        path = self._root / _ORDER_FILE
        if not path.exists():
            return []
        try:
            return list(json.loads(path.read_text(encoding="utf-8")))
        except json.JSONDecodeError:
            logger.warning("Bucket index %s is corrupt, rebuilding", path)
            return sorted(p.name for p in self._root.iterdir() if p.is_dir())

    def _write_order(self, order: list[str]) -> None:
        (self._root / _ORDER_FILE).write_text(json.dumps(order), encoding="utf-8")
