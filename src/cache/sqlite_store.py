# src/cache/sqlite_store.py — v2
"""SQLite-based cache storage (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency.
All buckets share one database file; bucket order follows insertion rowid.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from staleguard.cache.base_cache_storage import BaseCacheBucket, BaseCacheStorage
from staleguard.core.models import CachedEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_buckets (
    name TEXT PRIMARY KEY,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS cache_entries (
    bucket TEXT NOT NULL,
    key TEXT NOT NULL,
    data TEXT NOT NULL,
    status INTEGER,
    PRIMARY KEY (bucket, key)
);
CREATE INDEX IF NOT EXISTS idx_entries_bucket ON cache_entries(bucket);
"""


class SqliteCacheBucket(BaseCacheBucket):
    """Bucket rows in the shared cache_entries table."""

    def __init__(self, name: str, conn: sqlite3.Connection) -> None:
        super().__init__(name)
        self._conn = conn

    async def keys(self) -> list[str]:
        cursor = self._conn.execute(
            "SELECT key FROM cache_entries WHERE bucket = ? ORDER BY rowid",
            (self.name,),
        )
        return [row[0] for row in cursor.fetchall()]

    async def _load(self, key: str) -> CachedEntry | None:
        cursor = self._conn.execute(
            "SELECT data FROM cache_entries WHERE bucket = ? AND key = ?",
            (self.name, key),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        try:
            return CachedEntry.from_json(row[0])
        except Exception as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def _store(self, entry: CachedEntry) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO cache_entries (bucket, key, data, status)
               VALUES (?, ?, ?, ?)""",
            (self.name, entry.key, entry.to_json(), entry.response.status),
        )
        self._conn.commit()

    async def _remove(self, key: str) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM cache_entries WHERE bucket = ? AND key = ?",
            (self.name, key),
        )
        self._conn.commit()
        return cursor.rowcount > 0


class SqliteCacheStorage(BaseCacheStorage):
    """SQLite-backed cache storage for large profiles."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def keys(self) -> list[str]:
        cursor = self._conn.execute("SELECT name FROM cache_buckets ORDER BY rowid")
        return [row[0] for row in cursor.fetchall()]

    async def open(self, name: str) -> SqliteCacheBucket:
        self._conn.execute(
            "INSERT OR IGNORE INTO cache_buckets (name) VALUES (?)", (name,)
        )
        self._conn.commit()
        return SqliteCacheBucket(name, self._conn)

    async def delete(self, name: str) -> bool:
        cursor = self._conn.execute("DELETE FROM cache_buckets WHERE name = ?", (name,))
        self._conn.execute("DELETE FROM cache_entries WHERE bucket = ?", (name,))
        self._conn.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
