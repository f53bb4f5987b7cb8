# src/worker/registration.py — v1
"""Worker registrations and the RegistrationManager.

The container is the browser-owned list of registrations for an origin.
RegistrationManager is the page-side API over it: tear everything down for
a hard reset, or (re)register the current worker script idempotently.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Literal

from staleguard.core.errors import RegistrationError
from staleguard.worker.lifecycle import WorkerState
from staleguard.worker.service_worker import MSG_SKIP_WAITING, ServiceWorker

logger = logging.getLogger(__name__)

RegistrationEvent = Literal["waiting", "activated"]
RegistrationListener = Callable[["ServiceWorkerRegistration", RegistrationEvent], None]
WorkerFactory = Callable[[str], ServiceWorker]


class ServiceWorkerRegistration:
    """One scope's worker slots: installing, waiting and active."""

    def __init__(
        self, scope: str, script_url: str, container: BaseWorkerContainer
    ) -> None:
        self.scope = scope
        self.script_url = script_url
        self.installing: ServiceWorker | None = None
        self.waiting: ServiceWorker | None = None
        self.active: ServiceWorker | None = None
        self._container = container
        self._listeners: list[RegistrationListener] = []

    def add_listener(self, listener: RegistrationListener) -> None:
        self._listeners.append(listener)

    async def install(self, worker: ServiceWorker) -> None:
        """Install a new worker and activate it if nothing blocks it."""
        self.installing = worker
        try:
            await worker.install()
        except Exception:
            self.installing = None
            await worker.retire()
            raise
        self.installing = None

        if self.waiting is not None:
            await self.waiting.retire()
        self.waiting = worker

        if self.active is None or worker.skip_waiting_requested:
            await self.promote_waiting()
        else:
            logger.info("Worker %s waiting for clients to close", worker.version)
            self._emit("waiting")

    async def promote_waiting(self) -> None:
        """Activate the waiting worker, retiring the current one."""
        worker = self.waiting
        if worker is None:
            return
        self.waiting = None
        previous = self.active
        await worker.activate()
        self.active = worker
        if previous is not None and previous is not worker:
            await previous.retire()
        self._emit("activated")

    async def post_message_to_waiting(
        self, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Deliver a control message to the waiting worker."""
        if self.waiting is None:
            return None
        reply = await self.waiting.handle_message(data)
        if self.waiting.skip_waiting_requested:
            await self.promote_waiting()
        return reply

    async def update(self) -> bool:
        """Re-run the install check; returns True if a new version installed."""
        return await self._container.update(self)

    async def unregister(self) -> bool:
        """Remove this registration and retire its workers."""
        removed = await self._container.remove(self)
        if removed:
            for worker in (self.installing, self.waiting, self.active):
                if worker is not None:
                    await worker.retire()
            self.installing = self.waiting = self.active = None
        return removed

    def _emit(self, event: RegistrationEvent) -> None:
        for listener in self._listeners:
            try:
                listener(self, event)
            except Exception:
                logger.exception("Registration listener failed on %s", event)


class BaseWorkerContainer(ABC):
    """Browser-owned registration list for one origin."""

    @abstractmethod
    async def get_registrations(self) -> list[ServiceWorkerRegistration]:
        """Enumerate current registrations."""

    @abstractmethod
    async def register(
        self, script_url: str, scope: str = "/"
    ) -> ServiceWorkerRegistration:
        """Register a worker script for a scope."""

    @abstractmethod
    async def remove(self, registration: ServiceWorkerRegistration) -> bool:
        """Drop a registration. Returns True if it was present."""

    @abstractmethod
    async def update(self, registration: ServiceWorkerRegistration) -> bool:
        """Install a newer worker version for a registration, if any."""


class InMemoryWorkerContainer(BaseWorkerContainer):
    """Registrations keyed by scope; workers built by a factory.

    The factory is called with the script URL and returns a fresh
    ServiceWorker for whatever version is currently deployed.
    """

    def __init__(self, worker_factory: WorkerFactory) -> None:
        self._factory = worker_factory
        self._registrations: dict[str, ServiceWorkerRegistration] = {}

    async def get_registrations(self) -> list[ServiceWorkerRegistration]:
        return list(self._registrations.values())

    async def register(
        self, script_url: str, scope: str = "/"
    ) -> ServiceWorkerRegistration:
        registration = self._registrations.get(scope)
        if registration is not None and registration.script_url == script_url:
            await self.update(registration)
            return registration

        registration = ServiceWorkerRegistration(scope, script_url, self)
        self._registrations[scope] = registration
        await registration.install(self._factory(script_url))
        return registration

    async def remove(self, registration: ServiceWorkerRegistration) -> bool:
        current = self._registrations.get(registration.scope)
        if current is not registration:
            return False
        del self._registrations[registration.scope]
        return True

    async def update(self, registration: ServiceWorkerRegistration) -> bool:
        candidate = self._factory(registration.script_url)
        newest = registration.waiting or registration.active
        if newest is not None and newest.version == candidate.version:
            await candidate.retire()
            return False
        logger.info(
            "New worker version %s found for scope %s",
            candidate.version, registration.scope,
        )
        await registration.install(candidate)
        return True


class RegistrationManager:
    """Page-side management of worker registrations."""

    def __init__(self, container: BaseWorkerContainer) -> None:
        self._container = container

    async def unregister_all(self) -> int:
        """Unregister every registration; returns how many were removed.

        Individual failures are logged and skipped.

        Raises:
            RegistrationError: If registrations cannot be enumerated at all.
        """
        registrations = await self._registrations()
        count = 0
        for registration in registrations:
            try:
                if await registration.unregister():
                    logger.info("Unregistered worker for scope %s", registration.scope)
                    count += 1
            except Exception as e:
                logger.warning(
                    "Failed to unregister worker for scope %s: %s",
                    registration.scope, e,
                )
        return count

    async def register_current(
        self, script_url: str, scope: str = "/"
    ) -> ServiceWorkerRegistration:
        """Register the current worker, reusing an existing registration."""
        for registration in await self._registrations():
            if registration.script_url == script_url:
                logger.debug("Reusing registration for %s", script_url)
                return registration
        try:
            return await self._container.register(script_url, scope)
        except Exception as e:
            raise RegistrationError(f"Failed to register {script_url}: {e}") from e

    async def post_skip_waiting(self) -> int:
        """Ask every waiting worker to activate now. Returns workers signalled."""
        signalled = 0
        for registration in await self._registrations():
            if registration.waiting is not None:
                await registration.post_message_to_waiting({"type": MSG_SKIP_WAITING})
                signalled += 1
        return signalled

    async def check_for_updates(self) -> int:
        """Run the install check on every registration. Returns updates found."""
        found = 0
        for registration in await self._registrations():
            try:
                if await registration.update():
                    found += 1
            except Exception as e:
                logger.warning("Update check failed for %s: %s", registration.scope, e)
        return found

    async def active_workers(self) -> list[ServiceWorker]:
        return [
            r.active
            for r in await self._registrations()
            if r.active is not None and r.active.state is WorkerState.ACTIVE
        ]

    async def active_versions(self) -> list[str]:
        return [worker.version for worker in await self.active_workers()]

    async def _registrations(self) -> list[ServiceWorkerRegistration]:
        try:
            return await self._container.get_registrations()
        except Exception as e:
            raise RegistrationError(f"Cannot enumerate registrations: {e}") from e


