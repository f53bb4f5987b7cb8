# src/core/errors.py — v1
"""Exception hierarchy shared by the page and worker contexts."""

from __future__ import annotations


class StaleGuardError(Exception):
    """Base class for all staleguard errors."""


class StorageClearError(StaleGuardError):
    """A storage surface could not be cleared."""

    def __init__(self, surface: str, cause: Exception):
        self.surface = surface
        self.cause = cause
        super().__init__(f"Failed to clear {surface}: {cause}")


class RegistrationError(StaleGuardError):
    """Worker registration or enumeration failed."""


class WorkerStateError(StaleGuardError):
    """Illegal worker lifecycle transition."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Illegal worker transition {current} -> {target}")


class NetworkError(StaleGuardError):
    """A network fetch failed or timed out."""


class VersionCheckError(StaleGuardError):
    """The version descriptor could not be fetched or parsed."""


class HardResetError(StaleGuardError):
    """A hard-reset step failed before navigation was issued."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"Hard reset failed at step '{step}': {cause}")
