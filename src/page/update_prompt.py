# src/page/update_prompt.py — v1
"""UpdatePrompt: the "new version available" banner.

Driven by registration events: the first activation with no previous
worker means the app is ready offline; a worker left waiting means a
refresh is needed. "Update now" tells waiting workers to skip waiting.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from staleguard.worker.registration import (
    RegistrationEvent,
    RegistrationManager,
    ServiceWorkerRegistration,
)

logger = logging.getLogger(__name__)


class UpdatePrompt:
    """Banner state for worker updates."""

    def __init__(
        self,
        registrations: RegistrationManager,
        on_dismiss: Callable[[], None] | None = None,
    ) -> None:
        self._registrations = registrations
        self._on_dismiss = on_dismiss
        self.offline_ready = False
        self.need_refresh = False
        self._attached: set[int] = set()

    @property
    def visible(self) -> bool:
        return self.offline_ready or self.need_refresh

    @property
    def title(self) -> str:
        return "Update Available" if self.need_refresh else "App Ready"

    @property
    def message(self) -> str:
        if self.need_refresh:
            return "A new version is available. Click update to get the latest features."
        if self.offline_ready:
            return "App is ready to work offline."
        return ""

    def attach(
        self, registration: ServiceWorkerRegistration, first_install: bool = False
    ) -> None:
        """Listen to a registration; safe to call more than once.

        Pass ``first_install`` when the registration was just created with no
        worker active before it: its activation already happened during
        registration, so offline readiness is taken from its current slots.
        """
        if id(registration) in self._attached:
            return
        self._attached.add(id(registration))
        if registration.waiting is not None:
            self.need_refresh = True
        elif first_install and registration.active is not None:
            self.offline_ready = True
        registration.add_listener(self._on_event)

    def _on_event(
        self, registration: ServiceWorkerRegistration, event: RegistrationEvent
    ) -> None:
        if event == "waiting":
            logger.info("New worker waiting, prompting for refresh")
            self.need_refresh = True
        elif event == "activated" and not self.need_refresh:
            self.offline_ready = True

    async def update_now(self) -> int:
        """Activate waiting workers. Returns how many were signalled."""
        signalled = await self._registrations.post_skip_waiting()
        self.need_refresh = False
        return signalled

    def close(self) -> None:
        self.offline_ready = False
        self.need_refresh = False
        if self._on_dismiss is not None:
            self._on_dismiss()
