# src/page/runtime.py — v1
"""PageRuntime: wires the page-side components for one page lifetime.

    on_load: query flags -> load watchdog -> worker registration ->
             script verification -> version check
    on_error / on_unhandled_rejection: ErrorMonitor
    on_keydown: developer chord (gated)

Fetches issued by the page go through the active worker when there is one
and straight to the network otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import httpx

from staleguard.config.settings import Settings
from staleguard.core.errors import RegistrationError
from staleguard.core.models import FetchRequest, ResponseSnapshot, WipeReport
from staleguard.logging.context import set_page_context
from staleguard.page.error_monitor import ErrorMonitor
from staleguard.page.host import BasePageHost
from staleguard.page.reconciler import CheckOutcome, ResetOutcome, UpdateReconciler
from staleguard.page.triggers import (
    ForceUpdateButton,
    KeyChord,
    KeyEvent,
    QueryFlags,
    debug_tools_enabled,
)
from staleguard.page.update_prompt import UpdatePrompt
from staleguard.page.version_client import VersionClient
from staleguard.storage.profile import BrowserProfile
from staleguard.storage.wiper import StorageWiper
from staleguard.worker.network import Fetcher
from staleguard.worker.registration import BaseWorkerContainer, RegistrationManager

logger = logging.getLogger(__name__)

WORKER_SCRIPT = "/sw.js"


class PageRuntime:
    """One page lifetime: monitor, reconciler, triggers and update prompt."""

    def __init__(
        self,
        profile: BrowserProfile,
        host: BasePageHost,
        settings: Settings,
        container: BaseWorkerContainer,
        http_client: httpx.AsyncClient | None = None,
        worker_script: str = WORKER_SCRIPT,
        app_name: str = "the app",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.profile = profile
        self.host = host
        self.settings = settings
        self.worker_script = worker_script
        self._clock = clock
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(follow_redirects=True)
        origin = profile.origin.rstrip("/")

        self.registrations = RegistrationManager(container)
        self.version_client = VersionClient(
            origin,
            endpoint=settings.version_endpoint,
            timeout_s=settings.version_timeout_s,
            client=self._client,
            clock=clock,
        )
        self.monitor = ErrorMonitor(
            self._escalate,
            threshold=settings.error_threshold,
            classified_threshold=settings.classified_error_threshold,
            load_timeout_s=settings.load_timeout_s,
        )
        self.reconciler = UpdateReconciler(
            profile,
            self.registrations,
            host,
            self.version_client,
            settings,
            clock=clock,
            app_name=app_name,
            on_reset_started=self.monitor.dismiss,
        )
        self.prompt = UpdatePrompt(self.registrations, on_dismiss=self.monitor.dismiss)
        self.debug_tools = debug_tools_enabled(settings, host.location_href)
        self.button = ForceUpdateButton(self.reconciler, visible=self.debug_tools)
        self.chord = KeyChord()
        self._network = Fetcher(origin, client=self._client)

    # --- Page events ---

    async def on_load(self) -> CheckOutcome | ResetOutcome | None:
        """Run the page-load sequence.

        Returns the reset outcome when a query flag forced a reset,
        otherwise the version check outcome (None if the page never got
        that far).
        """
        set_page_context()
        flags = QueryFlags.parse(self.host.location_href)
        if flags.wants_hard_reset:
            logger.info("Hard reset requested by query flag")
            return await self.trigger_hard_reset("query_flag")
        if flags.cache_bust:
            logger.info("Cache bust requested, clearing cache buckets")
            await StorageWiper(self.profile).clear_caches(WipeReport())

        self.monitor.start_load_watchdog(lambda: self.host.ready_state == "loading")

        try:
            first_install = not await self.registrations.active_workers()
            registration = await self.registrations.register_current(
                self.worker_script
            )
            self.prompt.attach(registration, first_install=first_install)
        except RegistrationError as e:
            logger.warning("Worker registration failed: %s", e)

        await self.monitor.verify_scripts(self.host.script_tags())
        if self.reconciler.in_progress:
            return None
        return await self.reconciler.check_for_update()

    async def on_error(
        self, message: str, filename: str = "", lineno: int = 0, colno: int = 0
    ) -> bool:
        return await self.monitor.on_error(message, filename, lineno, colno)

    async def on_unhandled_rejection(self, reason: object) -> bool:
        return await self.monitor.on_unhandled_rejection(reason)

    async def on_keydown(self, event: KeyEvent) -> ResetOutcome | None:
        if not self.debug_tools or not self.chord.matches(event):
            return None
        logger.info("Force update shortcut pressed")
        return await self.trigger_hard_reset("keyboard")

    async def trigger_hard_reset(self, trigger: str) -> ResetOutcome:
        return await self.reconciler.hard_reset(trigger=trigger)

    # --- Requests ---

    async def fetch(self, request: FetchRequest) -> ResponseSnapshot:
        """Issue a request from the page, through the worker when active."""
        workers = await self.registrations.active_workers()
        if workers:
            response = await workers[0].handle_fetch(request)
            if response is not None:
                return response
        return await self._network.fetch(request)

    # --- Background ---

    async def poll(self, stop: asyncio.Event, tick_s: float | None = None) -> None:
        """Periodic version checks and worker update checks until stopped."""
        tick = tick_s or max(
            1.0,
            min(
                self.settings.update_check_interval_s,
                self.settings.worker_update_interval_s,
            ),
        )
        last_worker_check = self._clock()
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=tick)
                break
            except asyncio.TimeoutError:
                pass
            try:
                await self.reconciler.check_for_update()
                if self._clock() - last_worker_check >= self.settings.worker_update_interval_s:
                    last_worker_check = self._clock()
                    found = await self.registrations.check_for_updates()
                    if found:
                        logger.info("Found %d worker update(s)", found)
            except Exception:
                logger.exception("Background update check failed, retrying next tick")

    async def close(self) -> None:
        watchdog = self.monitor.stop_load_watchdog()
        if watchdog is not None:
            await watchdog
        if self._owns_client:
            await self._client.aclose()

    async def _escalate(self, reason: str) -> ResetOutcome:
        return await self.reconciler.hard_reset(trigger=reason)
