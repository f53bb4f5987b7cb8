# src/page/cache_bust.py — v1
"""Cache-busting reload URLs."""

from __future__ import annotations

import uuid
from urllib.parse import urlencode, urlsplit, urlunsplit


def new_cache_bust_token() -> str:
    """Short random token, unique per reload."""
    return uuid.uuid4().hex[:8]


def build_cache_busted_url(href: str, timestamp_ms: int, token: str) -> str:
    """Current origin + path with fresh ``updated`` and ``r`` parameters.

    The existing query string and fragment are dropped so trigger flags
    such as ``hard_reset=true`` cannot re-fire on the reloaded page.
    """
    parts = urlsplit(href)
    query = urlencode({"updated": timestamp_ms, "r": token})
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, ""))
