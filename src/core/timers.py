# src/core/timers.py — v1
"""Cancellable one-shot delay for asyncio code."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class CancellableTimer:
    """A delay that can be cancelled from elsewhere before it elapses.

    ``await timer.wait()`` returns True when the full delay elapsed and
    False when ``cancel()`` was called first. Cancelling after the delay
    elapsed has no effect.
    """

    def __init__(self, delay_s: float) -> None:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self.delay_s = delay_s
        self._cancelled = asyncio.Event()
        self._elapsed = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() and not self._elapsed

    @property
    def elapsed(self) -> bool:
        return self._elapsed

    def cancel(self) -> bool:
        """Cancel the pending delay. Returns False if it already elapsed."""
        if self._elapsed:
            return False
        self._cancelled.set()
        return True

    async def wait(self) -> bool:
        if self._cancelled.is_set():
            return False
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.delay_s)
        except asyncio.TimeoutError:
            self._elapsed = True
            return True
        logger.debug("Timer (%.2fs) cancelled", self.delay_s)
        return False
