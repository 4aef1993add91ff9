"""Checkpoint and display decisions.

Pure functions only: no store access and no clock reads. The tracker
supplies the current values so every rule can be tested in isolation.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, tzinfo

from pystepper._constants import MAX_COUNTER_VALUE, SAVE_INTERVAL, STEP_DELTA_THRESHOLD
from pystepper._dates import start_of_next_day
from pystepper.models.checkpoint import Checkpoint


def is_glitch(raw: float, *, max_value: int = MAX_COUNTER_VALUE) -> bool:
    """Return ``True`` when a raw counter value cannot be a real count."""
    if isinstance(raw, float) and math.isnan(raw):
        return True
    return raw < 0 or raw > max_value


def should_persist(
    *,
    steps: int,
    checkpoint: Checkpoint,
    now: datetime,
    step_delta_threshold: int = STEP_DELTA_THRESHOLD,
    save_interval: timedelta = SAVE_INTERVAL,
) -> bool:
    """Decide whether the current count warrants a durable write.

    Policy:
    - the count moved more than ``step_delta_threshold`` past the checkpoint, or
    - something was counted and the checkpoint is older than ``save_interval``.

    Both comparisons are strict.
    """
    if steps > checkpoint.saved_steps + step_delta_threshold:
        return True
    return steps > 0 and now > checkpoint.saved_at + save_interval


def steps_today(steps: int, baseline: int | None) -> int:
    """Steps counted since the day's baseline.

    Without a baseline the whole count is assumed to predate today, which
    yields 0 rather than attributing the full count to today.
    """
    if baseline is None:
        baseline = steps
    return steps - baseline


def next_wake_at(now: datetime, tz: tzinfo, save_interval: timedelta = SAVE_INTERVAL) -> datetime:
    """Next periodic wake-up: after ``save_interval``, but never past local midnight."""
    return min(start_of_next_day(now, tz), now + save_interval)
