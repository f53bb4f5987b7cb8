# src/worker/lifecycle.py — v1
"""Worker lifecycle states and the legal transitions between them."""

from __future__ import annotations

from enum import Enum

from staleguard.core.errors import WorkerStateError


class WorkerState(str, Enum):
    INSTALLING = "installing"
    WAITING = "waiting"
    ACTIVATING = "activating"
    ACTIVE = "active"
    REDUNDANT = "redundant"


_TRANSITIONS: dict[WorkerState, frozenset[WorkerState]] = {
    WorkerState.INSTALLING: frozenset({WorkerState.WAITING, WorkerState.REDUNDANT}),
    WorkerState.WAITING: frozenset({WorkerState.ACTIVATING, WorkerState.REDUNDANT}),
    WorkerState.ACTIVATING: frozenset({WorkerState.ACTIVE, WorkerState.REDUNDANT}),
    WorkerState.ACTIVE: frozenset({WorkerState.REDUNDANT}),
    WorkerState.REDUNDANT: frozenset(),
}


def check_transition(current: WorkerState, target: WorkerState) -> WorkerState:
    """Return target if the move is legal.

    Raises:
        WorkerStateError: For any transition not in the lifecycle graph.
    """
    if target not in _TRANSITIONS[current]:
        raise WorkerStateError(current.value, target.value)
    return target
