# src/storage/json_kv_store.py — v1
"""Durable key-value store persisted as one JSON object on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from staleguard.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)


class JsonKeyValueStore(BaseKeyValueStore):
    """Local storage that survives process restarts."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> str | None:
        return self._read().get(key)

    async def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = str(value)
        self._write(data)

    async def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    async def clear(self) -> None:
        self._write({})

    async def keys(self) -> list[str]:
        return list(self._read())

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Local storage file %s is corrupt: %s", self._path, e)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self._path)
