# src/storage/layout.py — v2
"""On-disk profile directory structure.

A profile holds the durable client state for one origin:

    {root}/{origin_slug}/
        caches/ or caches.db     cache storage (backend dependent)
        local_storage.json       durable key-value store
        databases/               structured databases (*.sqlite3)
"""

from __future__ import annotations

import re
from pathlib import Path

CACHES_DIR = "caches"
LOCAL_STORAGE_FILE = "local_storage.json"
DATABASES_DIR = "databases"


def origin_slug(origin: str) -> str:
    """Filesystem-safe name for an origin ('https://a.com:8080' -> 'https_a.com_8080')."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", origin).strip("_")


def profile_dir(root: Path, origin: str) -> Path:
    """Return the profile directory for an origin."""
    return Path(root).expanduser() / origin_slug(origin)


def local_storage_path(profile: Path) -> Path:
    return profile / LOCAL_STORAGE_FILE


def databases_dir(profile: Path) -> Path:
    return profile / DATABASES_DIR


