"""Structural store interfaces used by the tracker and the display refresh.

Keeping these as protocols makes it easy to pass test doubles while the
production implementation (`StepDatabase`) stays concrete.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Protocol

from pystepper.models.checkpoint import Checkpoint
from pystepper.models.preferences import Preferences


class StoreTransaction(Protocol):
    """Handle valid for one logical transaction."""

    def get_steps(self, day: date) -> int | None:
        """Baseline recorded for *day*, or ``None`` when the day is unknown."""
        ...

    def insert_new_day(self, day: date, baseline: int) -> None:
        """Record the baseline for *day*. Existing rows are never changed."""
        ...

    def save_current_steps(self, steps: int, saved_at: datetime) -> None:
        ...

    def get_current_steps(self) -> int:
        """Last saved count, 0 when nothing was saved yet."""
        ...

    def get_checkpoint(self) -> Checkpoint | None:
        ...

    def get_days(self) -> list[tuple[date, int]]:
        ...


class StepStore(Protocol):
    def transaction(self) -> AbstractContextManager[StoreTransaction]:
        """Open an exclusive read-modify-write section.

        The handle is released when the block exits, on every path.
        """
        ...


class PreferencesSource(Protocol):
    def load_preferences(self) -> Preferences:
        ...
