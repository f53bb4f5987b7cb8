# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

Integration tests run the page and the worker together against a durable
profile on disk (JSON and SQLite cache backends). No external services
required: HTTP goes through the FakeSite mock transport.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from staleguard.config.settings import Settings
from staleguard.page.host import RecordingPageHost
from staleguard.page.runtime import PageRuntime
from staleguard.storage.profile import BrowserProfile, open_profile
from staleguard.worker.registration import InMemoryWorkerContainer
from staleguard.worker.service_worker import ServiceWorker


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=["json", "sqlite"])
def durable_profile(request, tmp_path, origin, settings) -> Iterator[BrowserProfile]:
    """Profile persisted under tmp_path, once per cache backend."""
    backend_settings = settings.model_copy(update={"cache_backend": request.param})
    profile = open_profile(origin, backend_settings, root=tmp_path)
    yield profile
    close = getattr(profile.caches, "close", None)
    if close is not None:
        close()


@pytest.fixture
def durable_container(durable_profile, settings, site, fetcher) -> InMemoryWorkerContainer:
    def factory(script_url: str) -> ServiceWorker:
        worker_settings = settings.model_copy(
            update={"cache_version": site.worker_version}
        )
        return ServiceWorker(script_url, durable_profile, worker_settings, fetcher=fetcher)

    return InMemoryWorkerContainer(factory)


@pytest.fixture
def make_page(
    durable_profile, durable_container, settings, http_client, clock
) -> Callable[..., PageRuntime]:
    """Open a page on the durable profile; pass a host to reuse its history."""

    def _make(
        host: RecordingPageHost | None = None, settings_override: Settings | None = None
    ) -> PageRuntime:
        return PageRuntime(
            durable_profile,
            host or RecordingPageHost("https://app.example.com/dashboard"),
            settings_override or settings,
            durable_container,
            http_client=http_client,
            app_name="Rentals",
            clock=clock,
        )

    return _make
