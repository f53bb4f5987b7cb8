# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a fake deployed site served through httpx.MockTransport, settings
with a short reset delay, in-memory profiles, a recording page host and a
worker container. No network access: all HTTP is mocked.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from staleguard.config.settings import Settings
from staleguard.core.models import FetchRequest, ResponseSnapshot
from staleguard.page.host import RecordingPageHost
from staleguard.storage.profile import BrowserProfile
from staleguard.worker.network import Fetcher
from staleguard.worker.registration import InMemoryWorkerContainer
from staleguard.worker.service_worker import ServiceWorker

ORIGIN = "https://app.example.com"


class FakeSite:
    """A deployed build: static assets plus the version endpoint.

    Set ``offline`` to make every request fail with a connection error,
    ``deployed_version`` to simulate a new release.
    """

    def __init__(self) -> None:
        self.deployed_version = "1.0.0"
        self.worker_version = "v1"
        self.offline = False
        self.version_status = 200
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, tuple[int, str, bytes]] = {
            "/": (200, "text/html", b"<html>shell</html>"),
            "/index.html": (200, "text/html", b"<html>shell</html>"),
            "/assets/app.js": (200, "application/javascript", b"console.log('v1')"),
            "/assets/app.css": (200, "text/css", b"body{}"),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("offline", request=request)

        if request.url.host != "app.example.com":
            return httpx.Response(200, json={"remote": True})

        path = request.url.path
        if path == "/version.json":
            if self.version_status != 200:
                return httpx.Response(self.version_status)
            body = json.dumps({"version": self.deployed_version}).encode()
            return httpx.Response(
                200, content=body, headers={"content-type": "application/json"}
            )

        if path in self.routes:
            status, content_type, body = self.routes[path]
            return httpx.Response(
                status, content=body, headers={"content-type": content_type}
            )
        return httpx.Response(404, text="not found")

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)


# === FIXTURES: Configuration ===


@pytest.fixture
def settings() -> Settings:
    """Settings with a short reset delay and a small precache manifest."""
    return Settings(
        _env_file=None,
        reset_delay_s=0.01,
        precache_urls="/,/index.html,/assets/app.js",
    )


# === FIXTURES: HTTP ===


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def http_client(site: FakeSite) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(site.handler))


@pytest.fixture
def fetcher(http_client: httpx.AsyncClient) -> Fetcher:
    return Fetcher(ORIGIN, client=http_client)


# === FIXTURES: Browser state ===


@pytest.fixture
def profile() -> BrowserProfile:
    """All-memory profile for the test origin."""
    return BrowserProfile(origin=ORIGIN)


@pytest.fixture
def host() -> RecordingPageHost:
    return RecordingPageHost(f"{ORIGIN}/dashboard?tab=1#top")


@pytest.fixture
def container(
    profile: BrowserProfile, settings: Settings, site: FakeSite, fetcher: Fetcher
) -> InMemoryWorkerContainer:
    """Worker container whose factory builds the site's current worker version."""

    def factory(script_url: str) -> ServiceWorker:
        worker_settings = settings.model_copy(
            update={"cache_version": site.worker_version}
        )
        return ServiceWorker(script_url, profile, worker_settings, fetcher=fetcher)

    return InMemoryWorkerContainer(factory)


# === FIXTURES: Helpers ===


@pytest.fixture
def make_response():
    """Build a ResponseSnapshot with sensible defaults."""

    def _make(
        body: bytes = b"ok", status: int = 200, type: str = "basic", url: str = ""
    ) -> ResponseSnapshot:
        return ResponseSnapshot(status=status, body=body, type=type, url=url)

    return _make


@pytest.fixture
def asset_request() -> FetchRequest:
    return FetchRequest(url=f"{ORIGIN}/assets/app.js")


@pytest.fixture
def tmp_profile_dir(tmp_path: Path) -> Path:
    """Temporary profile root directory."""
    root = tmp_path / "profile"
    root.mkdir()
    return root


@pytest.fixture
def origin() -> str:
    return ORIGIN
