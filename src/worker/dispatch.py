# src/worker/dispatch.py — v1
"""Per-request dispatch policy: passthrough, network-first or cache-first.

The decision depends only on the request (method, URL, headers) and the
worker origin, so identical inputs always select the same strategy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from staleguard.config.settings import Settings
from staleguard.core.models import FetchRequest

READ_METHODS = frozenset({"GET"})
HTTP_SCHEMES = frozenset({"http", "https"})


class Strategy(str, Enum):
    PASSTHROUGH = "passthrough"
    NETWORK_FIRST = "network_first"
    CACHE_FIRST = "cache_first"


@dataclass(frozen=True)
class DispatchPolicy:
    """Immutable interception rules for one worker origin."""

    origin: str
    bypass_paths: tuple[str, ...] = ("/api", "/socket.io")
    bypass_hosts: tuple[str, ...] = ()
    dev_tooling: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings, origin: str) -> DispatchPolicy:
        return cls(
            origin=origin.rstrip("/").lower(),
            bypass_paths=tuple(settings.bypass_paths_list),
            bypass_hosts=tuple(settings.bypass_hosts_list),
            dev_tooling=tuple(settings.dev_tooling_patterns_list),
        )

    def decide(self, request: FetchRequest) -> Strategy:
        """Select the strategy for an intercepted request."""
        if self.should_bypass(request):
            return Strategy.PASSTHROUGH
        if request.origin != self.origin:
            return Strategy.NETWORK_FIRST
        return Strategy.CACHE_FIRST

    def should_bypass(self, request: FetchRequest) -> bool:
        if request.method.upper() not in READ_METHODS:
            return True
        if request.scheme not in HTTP_SCHEMES:
            return True
        if _disables_caching(request):
            return True

        path = request.path
        if any(path.startswith(p) for p in self.bypass_paths):
            return True
        if any(pattern in request.url for pattern in self.dev_tooling):
            return True
        return any(re.search(p, request.host, re.IGNORECASE) for p in self.bypass_hosts)


def _disables_caching(request: FetchRequest) -> bool:
    """Requests asking for a revalidated copy (version checks) skip the worker."""
    for name, value in request.headers.items():
        if name.lower() == "cache-control":
            directives = {d.strip().lower() for d in value.split(",")}
            return bool(directives & {"no-cache", "no-store"})
    return False
