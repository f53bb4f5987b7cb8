# src/page/error_monitor.py — v1
"""ErrorMonitor: turns runtime failures into stale-build escalations.

Signals: uncaught errors, unhandled rejections, scripts that never finished
loading, and a document stuck in 'loading'. Every signal counts toward the
general threshold; signals whose message looks like a truncated or missing
bundle chunk are classified, and a run of consecutive classified signals
escalates sooner.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from staleguard.core.models import ErrorSignal, FailureCounter, ScriptTag
from staleguard.core.timers import CancellableTimer

logger = logging.getLogger(__name__)

# Symptoms of a stale or partially downloaded bundle.
STALE_BUILD_PATTERNS: tuple[str, ...] = (
    "unexpected token",
    "unexpected identifier",
    "unexpected end of input",
    "loading chunk",
    "loading css chunk",
    "chunkloaderror",
    "failed to fetch dynamically imported module",
    "importing a module script failed",
    "error loading dynamically imported module",
    "failed to load",
    "script error",
    "network error",
)

_ALWAYS_CLASSIFIED = frozenset({"script_load", "load_timeout"})

Escalation = Callable[[str], Awaitable[Any]]


def is_stale_build_signal(signal: ErrorSignal) -> bool:
    """True when the signal matches a known corrupted-bundle symptom."""
    if signal.kind in _ALWAYS_CLASSIFIED:
        return True
    message = signal.message.lower()
    return any(pattern in message for pattern in STALE_BUILD_PATTERNS)


class ErrorMonitor:
    """Counts failure signals and escalates to a hard reset.

    Args:
        escalate: Coroutine function called with the escalation reason;
            normally the reconciler's hard reset.
        threshold: Signals of any kind that trigger escalation.
        classified_threshold: Consecutive classified signals that trigger
            escalation.
        load_timeout_s: Delay before the loading watchdog fires.
    """

    def __init__(
        self,
        escalate: Escalation,
        threshold: int = 3,
        classified_threshold: int = 2,
        load_timeout_s: float = 15.0,
    ) -> None:
        self._escalate = escalate
        self.counter = FailureCounter(
            threshold=threshold, classified_threshold=classified_threshold
        )
        self._load_timeout_s = load_timeout_s
        self._escalating = False
        self._watchdog_timer: CancellableTimer | None = None
        self._watchdog_task: asyncio.Task[None] | None = None
        self.escalations = 0
        self.last_reason: str | None = None

    async def record(self, signal: ErrorSignal) -> bool:
        """Count a signal; returns True if it caused an escalation."""
        classified = is_stale_build_signal(signal)
        self.counter.record(classified)
        logger.error(
            "%s detected (%s): %s",
            signal.kind,
            "stale build" if classified else "unclassified",
            signal.message or "<no message>",
            extra={
                "data": {
                    **signal.model_dump(),
                    "classified": classified,
                    "count": self.counter.count,
                }
            },
        )

        if self._escalating or not self.counter.should_escalate():
            return False

        self._escalating = True
        streak = self.counter.classified_streak
        if streak >= self.counter.classified_threshold:
            reason = "stale_build"
        else:
            reason = "error_threshold"
        self.last_reason = reason
        logger.warning(
            "Error threshold reached (%d signals), forcing update", self.counter.count
        )
        try:
            await self._escalate(reason)
        except Exception:
            logger.exception("Escalation failed")
        finally:
            self.counter.reset()
            self._escalating = False
            self.escalations += 1
        return True

    async def on_error(
        self, message: str, filename: str = "", lineno: int = 0, colno: int = 0
    ) -> bool:
        return await self.record(
            ErrorSignal(
                kind="error",
                message=message,
                filename=filename,
                lineno=lineno,
                colno=colno,
            )
        )

    async def on_unhandled_rejection(self, reason: object) -> bool:
        return await self.record(
            ErrorSignal(kind="unhandledrejection", message=str(reason))
        )

    async def verify_scripts(self, scripts: list[ScriptTag]) -> bool:
        """Post-load check that every script finished loading.

        Records a single classified signal when any did not.
        """
        missing = [s.src for s in scripts if not s.loaded]
        if not missing:
            return False
        loaded = len(scripts) - len(missing)
        return await self.record(
            ErrorSignal(
                kind="script_load",
                message=f"Not all scripts loaded: {loaded}/{len(scripts)}",
                filename=missing[0],
            )
        )

    def start_load_watchdog(self, is_loading: Callable[[], bool]) -> asyncio.Task[None]:
        """Record a signal if the document is still loading after the timeout."""
        self.stop_load_watchdog()
        timer = CancellableTimer(self._load_timeout_s)
        self._watchdog_timer = timer

        async def _watch() -> None:
            if await timer.wait() and is_loading():
                await self.record(
                    ErrorSignal(
                        kind="load_timeout",
                        message=f"Page still loading after {self._load_timeout_s:.0f}s",
                    )
                )

        self._watchdog_task = asyncio.create_task(_watch())
        return self._watchdog_task

    def stop_load_watchdog(self) -> asyncio.Task[None] | None:
        """Cancel the watchdog; returns its task so callers can await it."""
        task = self._watchdog_task
        if self._watchdog_timer is not None:
            self._watchdog_timer.cancel()
        self._watchdog_timer = None
        self._watchdog_task = None
        return task

    def dismiss(self) -> None:
        """Explicit dismissal: forget the signals seen so far."""
        self.counter.reset()
