# src/storage/databases.py — v1
"""Structured local databases: enumerate and delete.

The in-memory registry backs tests; the SQLite registry treats every
``*.sqlite3`` file in a profile directory as one named database.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class BaseDatabaseRegistry(ABC):
    """Unified interface for structured database backends."""

    @abstractmethod
    async def databases(self) -> list[str]:
        """List database names."""

    @abstractmethod
    async def create(self, name: str) -> None:
        """Create an empty database if it does not exist."""

    @abstractmethod
    async def delete_database(self, name: str) -> None:
        """Delete a database by name. Missing names are ignored."""


class MemoryDatabaseRegistry(BaseDatabaseRegistry):
    """Named in-memory object stores."""

    def __init__(self) -> None:
        self._dbs: dict[str, dict[str, Any]] = {}

    async def databases(self) -> list[str]:
        return list(self._dbs)

    async def create(self, name: str) -> None:
        self._dbs.setdefault(name, {})

    async def delete_database(self, name: str) -> None:
        self._dbs.pop(name, None)

    def store(self, name: str) -> dict[str, Any]:
        """Direct access to a database's object store."""
        return self._dbs[name]


class SqliteDatabaseRegistry(BaseDatabaseRegistry):
    """Directory of SQLite database files."""

    _SUFFIX = ".sqlite3"

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def databases(self) -> list[str]:
        return sorted(p.stem for p in self._root.glob(f"*{self._SUFFIX}"))

    async def create(self, name: str) -> None:
        conn = sqlite3.connect(str(self.path_for(name)))
        conn.close()

    async def delete_database(self, name: str) -> None:
        path = self.path_for(name)
        for candidate in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
            if candidate.exists():
                candidate.unlink()
                logger.debug("Removed %s", candidate)

    def path_for(self, name: str) -> Path:
        safe_name = name.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_name}{self._SUFFIX}"
