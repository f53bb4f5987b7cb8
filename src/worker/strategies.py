# src/worker/strategies.py — v1
"""Cache-first and network-first request strategies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urljoin

from staleguard.cache.base_cache_storage import BaseCacheStorage
from staleguard.core.errors import NetworkError
from staleguard.core.models import (
    CachedEntry,
    CacheGeneration,
    FetchRequest,
    ResponseSnapshot,
)
from staleguard.worker.network import Fetcher
from staleguard.worker.offline import offline_page_response, offline_text_response

logger = logging.getLogger(__name__)

# Same-origin entries worth persisting from the network path.
_CACHEABLE_TYPES = frozenset({"basic", "cors"})

# SPA shell entries served for navigations when nothing better is cached.
APP_SHELL_PATHS = ("/index.html", "/")


@dataclass
class StrategyContext:
    """Everything a strategy needs from the owning worker."""

    caches: BaseCacheStorage
    fetcher: Fetcher
    origin: str
    static_bucket: str
    dynamic_bucket: str
    navigation_timeout_s: float = 12.0
    resource_timeout_s: float = 10.0

    def timeout_for(self, request: FetchRequest) -> float:
        if request.is_navigation:
            return self.navigation_timeout_s
        return self.resource_timeout_s

    async def lookup(self, request: FetchRequest) -> CachedEntry | None:
        """Match in the worker's own buckets, static first."""
        for name in (self.static_bucket, self.dynamic_bucket):
            if not await self.caches.has(name):
                continue
            bucket = await self.caches.open(name)
            entry = await bucket.match(request)
            if entry is not None:
                return entry
        return None

    async def store_dynamic(
        self, request: FetchRequest, response: ResponseSnapshot
    ) -> None:
        """Persist a successful response; storage errors are logged only."""
        try:
            bucket = await self.caches.open(self.dynamic_bucket)
            await bucket.put(request, response, CacheGeneration.DYNAMIC)
        except Exception as e:
            logger.warning("Could not cache %s: %s", request.key, e)


async def cache_first(ctx: StrategyContext, request: FetchRequest) -> ResponseSnapshot:
    """Serve from cache when possible, otherwise from the network.

    Status-200 basic/cors responses are written to the dynamic bucket. On
    total failure navigations fall back to the cached app shell, then to
    the offline page.
    """
    cached = await ctx.lookup(request)
    if cached is not None:
        logger.debug("Cache hit %s (%s)", request.key, cached.generation.value)
        return cached.response

    try:
        response = await ctx.fetcher.fetch(request, timeout=ctx.timeout_for(request))
    except NetworkError as e:
        logger.info("Network failed for %s: %s", request.url, e)
        if request.is_navigation:
            shell = await _app_shell(ctx)
            if shell is not None:
                return shell.response
            return offline_page_response(request)
        return offline_text_response(request)

    if response.status == 200 and response.type in _CACHEABLE_TYPES:
        await ctx.store_dynamic(request, response)
    return response


async def network_first(ctx: StrategyContext, request: FetchRequest) -> ResponseSnapshot:
    """Prefer fresh network data, degrade to cache, then to a plain 503."""
    try:
        response = await ctx.fetcher.fetch(request, timeout=ctx.timeout_for(request))
    except NetworkError as e:
        logger.info("Network failed for %s, trying cache: %s", request.url, e)
        cached = await ctx.lookup(request)
        if cached is not None:
            return cached.response
        return offline_text_response(request)

    if response.ok:
        await ctx.store_dynamic(request, response)
    return response


async def _app_shell(ctx: StrategyContext) -> CachedEntry | None:
    for path in APP_SHELL_PATHS:
        shell_request = FetchRequest(url=urljoin(ctx.origin + "/", path.lstrip("/")))
        entry = await ctx.lookup(shell_request)
        if entry is not None:
            return entry
    return None
