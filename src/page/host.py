# src/page/host.py — v1
"""The page host: location, document state and blocking renders.

BasePageHost is what the page-side components need from the embedding
browser or web view. RecordingPageHost keeps everything in memory and
records navigations, which is what tests and headless runs use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from staleguard.core.models import ScriptTag

ReadyState = Literal["loading", "interactive", "complete"]


class BasePageHost(ABC):
    """Page-context surface of the embedding browser."""

    @property
    @abstractmethod
    def location_href(self) -> str:
        """Current page URL."""

    @property
    @abstractmethod
    def ready_state(self) -> ReadyState:
        """Document loading state."""

    @abstractmethod
    def script_tags(self) -> list[ScriptTag]:
        """All <script src> elements and whether each finished loading."""

    @abstractmethod
    def replace_location(self, url: str) -> None:
        """Navigate without adding a history entry."""

    @abstractmethod
    def render_blocking(self, html: str) -> None:
        """Replace the page body with a full-screen element."""


class RecordingPageHost(BasePageHost):
    """In-memory host that records what the page asked it to do."""

    def __init__(
        self,
        href: str,
        ready_state: ReadyState = "complete",
        scripts: list[ScriptTag] | None = None,
    ) -> None:
        self.history: list[str] = [href]
        self.navigations: list[str] = []
        self.rendered: list[str] = []
        self._ready_state: ReadyState = ready_state
        self._scripts = list(scripts or [])

    @property
    def location_href(self) -> str:
        return self.history[-1]

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    def set_ready_state(self, state: ReadyState) -> None:
        self._ready_state = state

    def script_tags(self) -> list[ScriptTag]:
        return list(self._scripts)

    def replace_location(self, url: str) -> None:
        self.navigations.append(url)
        self.history[-1] = url

    def render_blocking(self, html: str) -> None:
        self.rendered.append(html)
