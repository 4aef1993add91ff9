"""Lifecycle events and states of the schedule coordinator.

The host environment (scheduler, signal handlers, supervisor) reports what
happened as one of these events; the coordinator maps each one to a
transition.
"""

from __future__ import annotations

from enum import StrEnum


class LifecycleEvent(StrEnum):
    START = "start"
    WAKE = "wake"
    TASK_REMOVED = "task_removed"
    SHUTDOWN = "shutdown"
    STOP = "stop"


class CoordinatorState(StrEnum):
    IDLE = "idle"
    ARMED = "armed"
    INTERRUPTED = "interrupted"
    SHUT_DOWN = "shut_down"


class WakeReason(StrEnum):
    """Scheduler slot of a wake-up. Each slot holds at most one pending wake."""

    PERIODIC = "periodic"
    RESTART = "restart"
