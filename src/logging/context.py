# src/logging/context.py — v2
"""Contextual logging support: attach context, worker version, reset id and
trigger to log records."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per execution context.
_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "context", default=None
)
_worker_version: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker_version", default=None
)
_reset_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "reset_id", default=None
)
_trigger: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trigger", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    context: str | None = None
    worker_version: str | None = None
    reset_id: str | None = None
    trigger: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        context=_context.get(),
        worker_version=_worker_version.get(),
        reset_id=_reset_id.get(),
        trigger=_trigger.get(),
    )


@contextmanager
def worker_context(version: str) -> Iterator[None]:
    """Mark records emitted inside a worker event handler."""
    tokens = (_context.set("worker"), _worker_version.set(version))
    try:
        yield
    finally:
        _worker_version.reset(tokens[1])
        _context.reset(tokens[0])


@contextmanager
def reset_context(reset_id: str, trigger: str) -> Iterator[None]:
    """Mark records emitted while a hard reset sequence runs."""
    tokens = (_context.set("page"), _reset_id.set(reset_id), _trigger.set(trigger))
    try:
        yield
    finally:
        _trigger.reset(tokens[2])
        _reset_id.reset(tokens[1])
        _context.reset(tokens[0])


def set_page_context() -> None:
    """Set page-level context (called once per page lifetime)."""
    _context.set("page")


def clear_context() -> None:
    """Reset all context variables."""
    _context.set(None)
    _worker_version.set(None)
    _reset_id.set(None)
    _trigger.set(None)
