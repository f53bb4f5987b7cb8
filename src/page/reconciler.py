# src/page/reconciler.py — v1
"""UpdateReconciler: version polling and the hard-reset sequence.

Hard reset, always in this order:

    1. render the blocking placeholder
    2. delete cache buckets, clear local and session storage
    3. unregister every worker
    4. delete structured databases
    5. wait a short (cancellable) settle delay
    6. location.replace() to a cache-busted URL
    7. record the pending version, if any

State machine: IDLE -> UPDATING -> SUCCESS | ERROR. A trigger while
UPDATING is ignored. A failure before step 6 leaves the page in ERROR
without navigating and puts back the version bookkeeping it wiped, so the
next check still sees the old version and retries the reset.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from enum import Enum

from staleguard.config.settings import Settings
from staleguard.core.errors import HardResetError
from staleguard.core.models import WipeReport
from staleguard.core.timers import CancellableTimer
from staleguard.logging.context import reset_context
from staleguard.page.cache_bust import build_cache_busted_url, new_cache_bust_token
from staleguard.page.host import BasePageHost
from staleguard.page.overlay import render_update_overlay
from staleguard.page.version_client import VersionClient
from staleguard.storage.profile import BrowserProfile
from staleguard.storage.wiper import StorageWiper
from staleguard.worker.registration import RegistrationManager

logger = logging.getLogger(__name__)

KEY_APP_VERSION = "app_version"
KEY_LAST_UPDATE_CHECK = "last_update_check"
_BOOKKEEPING_KEYS = (KEY_APP_VERSION, KEY_LAST_UPDATE_CHECK)


class ResetState(str, Enum):
    IDLE = "idle"
    UPDATING = "updating"
    SUCCESS = "success"
    ERROR = "error"


class ResetOutcome(str, Enum):
    COMPLETED = "completed"
    IGNORED = "ignored"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CheckOutcome(str, Enum):
    SKIPPED = "skipped"
    UNAVAILABLE = "unavailable"
    BASELINE = "baseline"
    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    UPDATE_FAILED = "update_failed"


class UpdateReconciler:
    """Keeps the page on the deployed build."""

    def __init__(
        self,
        profile: BrowserProfile,
        registrations: RegistrationManager,
        host: BasePageHost,
        version_client: VersionClient,
        settings: Settings,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] = new_cache_bust_token,
        app_name: str = "the app",
        on_reset_started: Callable[[], None] | None = None,
    ) -> None:
        self._profile = profile
        self._wiper = StorageWiper(profile)
        self._registrations = registrations
        self._host = host
        self._version_client = version_client
        self._settings = settings
        self._clock = clock
        self._token_factory = token_factory
        self._app_name = app_name
        self._on_reset_started = on_reset_started

        self.state = ResetState.IDLE
        self.last_error: HardResetError | None = None
        self.last_report: WipeReport | None = None
        self.last_navigation: str | None = None
        self.resets_started = 0
        self._in_progress = False
        self._timer: CancellableTimer | None = None

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    # --- Version polling ---

    async def check_for_update(self) -> CheckOutcome:
        """Compare the deployed version with the local record.

        Runs at most once per UPDATE_CHECK_INTERVAL_S; earlier calls return
        SKIPPED without touching the network.
        """
        local = self._profile.local_storage
        now_ms = int(self._clock() * 1000)
        last_check = _parse_int(await local.get(KEY_LAST_UPDATE_CHECK))
        interval_ms = int(self._settings.update_check_interval_s * 1000)
        if last_check is not None and now_ms - last_check < interval_ms:
            logger.debug("Update check skipped, last ran %d ms ago", now_ms - last_check)
            return CheckOutcome.SKIPPED

        await local.set(KEY_LAST_UPDATE_CHECK, str(now_ms))
        descriptor = await self._version_client.fetch()
        if descriptor is None:
            return CheckOutcome.UNAVAILABLE

        local_version = await local.get(KEY_APP_VERSION)
        if local_version is None:
            logger.info("Recording baseline version %s", descriptor.version)
            await local.set(KEY_APP_VERSION, descriptor.version)
            return CheckOutcome.BASELINE

        if local_version == descriptor.version:
            logger.info("App is up to date (%s)", local_version)
            return CheckOutcome.UP_TO_DATE

        logger.info("New version detected: %s -> %s", local_version, descriptor.version)
        outcome = await self.hard_reset(
            trigger="version_change", pending_version=descriptor.version
        )
        if outcome is ResetOutcome.COMPLETED:
            return CheckOutcome.UPDATED
        return CheckOutcome.UPDATE_FAILED

    # --- Hard reset ---

    async def hard_reset(
        self, trigger: str = "manual", pending_version: str | None = None
    ) -> ResetOutcome:
        """Run the full reset sequence once.

        Returns:
            COMPLETED once navigation was issued, IGNORED if a reset is
            already running, CANCELLED if the settle delay was cancelled,
            FAILED if a step raised (state becomes ERROR).
        """
        if self._in_progress:
            logger.info("Hard reset (%s) ignored, one is already running", trigger)
            return ResetOutcome.IGNORED

        self._in_progress = True
        self.resets_started += 1
        reset_id = uuid.uuid4().hex[:8]
        try:
            if self._on_reset_started is not None:
                self._on_reset_started()
            with reset_context(reset_id, trigger):
                return await self._run_reset(pending_version)
        finally:
            self._in_progress = False
            self._timer = None

    def cancel_pending_navigation(self) -> bool:
        """Cancel the settle delay of a running reset, if there is one."""
        if self._timer is None:
            return False
        return self._timer.cancel()

    def acknowledge_error(self) -> None:
        """User dismissed the error state."""
        if self.state is ResetState.ERROR:
            self.state = ResetState.IDLE
            self.last_error = None

    async def _run_reset(self, pending_version: str | None) -> ResetOutcome:
        self.state = ResetState.UPDATING
        self.last_error = None
        logger.info("Performing hard reset")

        report = WipeReport()
        self.last_report = report
        bookkeeping = await self._read_bookkeeping()
        step = "overlay"
        try:
            self._host.render_blocking(render_update_overlay(self._app_name))

            step = "caches"
            await self._wiper.clear_caches(report)
            step = "local_storage"
            await self._wiper.clear_local_storage(report)
            step = "session_storage"
            await self._wiper.clear_session_storage(report)

            step = "registrations"
            unregistered = await self._registrations.unregister_all()
            logger.info("Unregistered %d worker registration(s)", unregistered)

            step = "databases"
            await self._wiper.clear_databases(report)

            step = "wipe"
            if not report.succeeded:
                raise RuntimeError(f"incomplete wipe: {report.failed_steps}")

            step = "delay"
            self._timer = CancellableTimer(self._settings.reset_delay_s)
            if not await self._timer.wait():
                logger.info("Hard reset navigation cancelled")
                await self._restore_bookkeeping(bookkeeping)
                self.state = ResetState.IDLE
                return ResetOutcome.CANCELLED

            step = "navigate"
            url = build_cache_busted_url(
                self._host.location_href,
                int(self._clock() * 1000),
                self._token_factory(),
            )
            logger.info("Force reloading to %s", url)
            self._host.replace_location(url)
            self.last_navigation = url
        except Exception as e:
            self.last_error = HardResetError(step, e)
            self.state = ResetState.ERROR
            logger.error("%s", self.last_error, exc_info=True)
            await self._restore_bookkeeping(bookkeeping)
            return ResetOutcome.FAILED

        self.state = ResetState.SUCCESS
        if pending_version is not None:
            try:
                await self._profile.local_storage.set(KEY_APP_VERSION, pending_version)
            except Exception as e:
                logger.warning("Could not record version %s: %s", pending_version, e)
        return ResetOutcome.COMPLETED

    async def _read_bookkeeping(self) -> dict[str, str]:
        """Snapshot the version keys that clearing local storage removes."""
        values: dict[str, str] = {}
        try:
            for key in _BOOKKEEPING_KEYS:
                value = await self._profile.local_storage.get(key)
                if value is not None:
                    values[key] = value
        except Exception as e:
            logger.warning("Could not read version bookkeeping: %s", e)
        return values

    async def _restore_bookkeeping(self, values: dict[str, str]) -> None:
        """Put the pre-reset version keys back after an aborted reset.

        Without them the next check would record the deployed version as a
        baseline while the page still runs the old build.
        """
        for key, value in values.items():
            try:
                await self._profile.local_storage.set(key, value)
            except Exception as e:
                logger.warning("Could not restore %s after aborted reset: %s", key, e)


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
