# src/page/triggers.py — v1
"""Manual hard-reset triggers: query flags, the force-update button and the
developer keyboard chord.

Button and chord are shown only in non-production builds (or when
SHOW_DEBUG_TOOLS is set) unless the page was opened with ``debug=true``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, urlsplit

from staleguard.config.settings import Settings
from staleguard.page.reconciler import ResetOutcome, ResetState, UpdateReconciler

logger = logging.getLogger(__name__)


def _flag(params: dict[str, list[str]], name: str) -> bool:
    values = params.get(name)
    return bool(values) and values[-1].lower() == "true"


@dataclass(frozen=True)
class QueryFlags:
    """Trigger flags read from the page URL."""

    hard_reset: bool = False
    force_update: bool = False
    cache_bust: bool = False
    debug: bool = False

    @classmethod
    def parse(cls, url: str) -> QueryFlags:
        params = parse_qs(urlsplit(url).query)
        return cls(
            hard_reset=_flag(params, "hard_reset"),
            force_update=_flag(params, "force_update"),
            cache_bust="cache_bust" in params,
            debug=_flag(params, "debug"),
        )

    @property
    def wants_hard_reset(self) -> bool:
        return self.hard_reset or self.force_update


def debug_tools_enabled(settings: Settings, url: str, show_in_dev: bool = True) -> bool:
    """Whether the manual triggers are available on this page."""
    if QueryFlags.parse(url).debug or settings.show_debug_tools:
        return True
    return show_in_dev and not settings.is_production


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False


@dataclass(frozen=True)
class KeyChord:
    """A key combination; the default is Ctrl+Shift+U."""

    key: str = "U"
    ctrl: bool = True
    shift: bool = True
    alt: bool = False

    def matches(self, event: KeyEvent) -> bool:
        return (
            event.key.upper() == self.key.upper()
            and event.ctrl == self.ctrl
            and event.shift == self.shift
            and event.alt == self.alt
        )


class ButtonLabel(str, Enum):
    IDLE = "Force Update"
    UPDATING = "Updating..."
    SUCCESS = "Reloading..."
    ERROR = "Retry Update"


_LABELS = {
    ResetState.IDLE: ButtonLabel.IDLE,
    ResetState.UPDATING: ButtonLabel.UPDATING,
    ResetState.SUCCESS: ButtonLabel.SUCCESS,
    ResetState.ERROR: ButtonLabel.ERROR,
}

_MESSAGES = {
    ResetState.IDLE: "",
    ResetState.UPDATING: "Clearing all caches and storage...",
    ResetState.SUCCESS: "Cache cleared! Reloading page...",
    ResetState.ERROR: "Update failed. Please try again.",
}


class ForceUpdateButton:
    """Floating force-update control bound to the reconciler state."""

    def __init__(self, reconciler: UpdateReconciler, visible: bool) -> None:
        self._reconciler = reconciler
        self.visible = visible

    @property
    def state(self) -> ResetState:
        return self._reconciler.state

    @property
    def label(self) -> str:
        return _LABELS[self.state].value

    @property
    def status_message(self) -> str:
        return _MESSAGES[self.state]

    @property
    def disabled(self) -> bool:
        return self.state in (ResetState.UPDATING, ResetState.SUCCESS)

    async def press(self) -> ResetOutcome:
        if not self.visible:
            return ResetOutcome.IGNORED
        if self.disabled:
            logger.debug("Force update pressed while %s, ignoring", self.state.value)
            return ResetOutcome.IGNORED
        logger.info("Force update requested")
        return await self._reconciler.hard_reset(trigger="button")

    def dismiss_error(self) -> None:
        self._reconciler.acknowledge_error()
