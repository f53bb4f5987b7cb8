# src/storage/base_kv_store.py — v1
"""Abstract key-value store interface (local and session storage)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseKeyValueStore(ABC):
    """String-to-string store with Web Storage semantics."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value for key, or None."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """List stored keys."""


class MemoryKeyValueStore(BaseKeyValueStore):
    """Dict-backed store; session storage always uses this backend."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    async def keys(self) -> list[str]:
        return list(self._data)
