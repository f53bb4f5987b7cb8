# src/worker/service_worker.py — v1
"""ServiceWorker: the owned state of one worker version.

One instance per worker script version, constructed by the worker
container at registration time. It owns the version-tagged static and
dynamic buckets and walks the lifecycle:

    INSTALLING -> WAITING -> ACTIVATING -> ACTIVE -> REDUNDANT

Install precaches the manifest; activate deletes every bucket that does not
belong to this version and claims open clients. Fetches are only
intercepted while ACTIVE.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urljoin

from staleguard.config.settings import Settings
from staleguard.core.errors import NetworkError
from staleguard.core.models import (
    CacheBucketName,
    CacheGeneration,
    FetchRequest,
    ResponseSnapshot,
)
from staleguard.logging.context import worker_context
from staleguard.storage.profile import BrowserProfile
from staleguard.worker.dispatch import DispatchPolicy, Strategy
from staleguard.worker.lifecycle import WorkerState, check_transition
from staleguard.worker.network import Fetcher
from staleguard.worker.offline import offline_fallback
from staleguard.worker.strategies import StrategyContext, cache_first, network_first

logger = logging.getLogger(__name__)

MSG_SKIP_WAITING = "SKIP_WAITING"
MSG_GET_VERSION = "GET_VERSION"
MSG_CLEAR_CACHES = "CLEAR_CACHES"


class ServiceWorker:
    """Request-handling state machine for one worker version."""

    def __init__(
        self,
        script_url: str,
        profile: BrowserProfile,
        settings: Settings,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.script_url = script_url
        self.version = settings.cache_version
        self._settings = settings
        self._profile = profile
        self._origin = profile.origin.rstrip("/").lower()
        self._owns_fetcher = fetcher is None
        self._fetcher = fetcher or Fetcher(self._origin)
        self._policy = DispatchPolicy.from_settings(settings, self._origin)

        self.static_bucket = CacheBucketName(
            prefix=settings.cache_prefix,
            version=settings.cache_version,
            generation=CacheGeneration.STATIC,
        )
        self.dynamic_bucket = CacheBucketName(
            prefix=settings.cache_prefix,
            version=settings.cache_version,
            generation=CacheGeneration.DYNAMIC,
        )
        self._strategy_ctx = StrategyContext(
            caches=profile.caches,
            fetcher=self._fetcher,
            origin=self._origin,
            static_bucket=self.static_bucket.name,
            dynamic_bucket=self.dynamic_bucket.name,
            navigation_timeout_s=settings.navigation_timeout_s,
            resource_timeout_s=settings.resource_timeout_s,
        )

        self.state = WorkerState.INSTALLING
        self.skip_waiting_requested = False
        self.clients_claimed = False
        self.precached: list[str] = []

    @property
    def policy(self) -> DispatchPolicy:
        return self._policy

    # --- Lifecycle ---

    async def install(self) -> None:
        """Precache the static manifest, then move to WAITING.

        Assets that fail to download are logged and skipped; installation
        itself does not fail on them.
        """
        with worker_context(self.version):
            bucket = await self._profile.caches.open(self.static_bucket.name)
            urls = [
                urljoin(self._origin + "/", u.lstrip("/"))
                for u in self._settings.precache_urls_list
            ]
            results = await asyncio.gather(
                *(self._precache_one(url) for url in urls), return_exceptions=True
            )
            for url, result in zip(urls, results):
                if isinstance(result, BaseException):
                    logger.warning("Precache skipped %s: %s", url, result)
                    continue
                await bucket.put(FetchRequest(url=url), result, CacheGeneration.STATIC)
                self.precached.append(url)

            self._transition(WorkerState.WAITING)
            logger.info(
                "Worker %s installed, %d/%d assets precached",
                self.version, len(self.precached), len(urls),
            )
            if self._settings.skip_waiting_on_install:
                self.skip_waiting()

    async def activate(self) -> None:
        """Delete buckets from other versions and claim clients."""
        with worker_context(self.version):
            self._transition(WorkerState.ACTIVATING)
            for name in await self._profile.caches.keys():
                if not self.owns_bucket(name):
                    logger.info("Deleting stale cache bucket %s", name)
                    await self._profile.caches.delete(name)
            self.clients_claimed = True
            self._transition(WorkerState.ACTIVE)
            logger.info("Worker %s active", self.version)

    def skip_waiting(self) -> None:
        """Request activation without waiting for old clients to close."""
        self.skip_waiting_requested = True

    def mark_redundant(self) -> None:
        if self.state is not WorkerState.REDUNDANT:
            self._transition(WorkerState.REDUNDANT)

    async def retire(self) -> None:
        """Mark redundant and release the HTTP client if this worker made it."""
        self.mark_redundant()
        if self._owns_fetcher:
            await self._fetcher.aclose()

    def owns_bucket(self, name: str) -> bool:
        parsed = CacheBucketName.parse(name)
        return (
            parsed is not None
            and parsed.prefix == self.static_bucket.prefix
            and parsed.version == self.version
        )

    # --- Events ---

    async def handle_fetch(self, request: FetchRequest) -> ResponseSnapshot | None:
        """Respond to an intercepted request.

        Returns None when the request is not intercepted (worker not active
        or the dispatch policy passes it through). Never raises: any failure
        becomes the offline fallback.
        """
        if self.state is not WorkerState.ACTIVE:
            return None

        strategy = self._policy.decide(request)
        if strategy is Strategy.PASSTHROUGH:
            return None

        with worker_context(self.version):
            try:
                if strategy is Strategy.NETWORK_FIRST:
                    return await network_first(self._strategy_ctx, request)
                return await cache_first(self._strategy_ctx, request)
            except Exception:
                logger.exception("Fetch handler failed for %s", request.key)
                return offline_fallback(request)

    async def handle_message(self, data: Any) -> dict[str, Any] | None:
        """Handle a control message posted by a page."""
        if not isinstance(data, dict):
            return None
        msg_type = data.get("type")

        if msg_type == MSG_SKIP_WAITING:
            logger.info("Worker %s received SKIP_WAITING", self.version)
            self.skip_waiting()
            return {"type": msg_type, "ok": True}

        if msg_type == MSG_GET_VERSION:
            return {"type": msg_type, "version": self.version}

        if msg_type == MSG_CLEAR_CACHES:
            deleted = 0
            for name in await self._profile.caches.keys():
                if self.owns_bucket(name):
                    await self._profile.caches.delete(name)
                    deleted += 1
            return {"type": msg_type, "deleted": deleted}

        logger.debug("Ignoring unknown worker message %r", msg_type)
        return None

    # --- Internals ---

    async def _precache_one(self, url: str) -> ResponseSnapshot:
        response = await self._fetcher.fetch(
            FetchRequest(url=url, headers={"Cache-Control": "no-cache"}),
            timeout=self._settings.resource_timeout_s,
        )
        if not response.ok:
            raise NetworkError(f"status {response.status}")
        return response

    def _transition(self, target: WorkerState) -> None:
        self.state = check_transition(self.state, target)
