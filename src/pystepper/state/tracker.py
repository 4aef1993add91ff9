"""Step tracker: session count, checkpoint decisions and today's total.

This is the only component allowed to write checkpoints and daily
baselines. It is driven from a single event loop; the store serializes
access between process instances.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta, tzinfo

from pystepper._constants import MAX_COUNTER_VALUE, SAVE_INTERVAL, STEP_DELTA_THRESHOLD
from pystepper._dates import local_day
from pystepper.display.message import build_display_state
from pystepper.display.refresh import DisplayRefresher
from pystepper.exceptions import StepperStoreError
from pystepper.models.checkpoint import Checkpoint
from pystepper.models.display import DisplayState
from pystepper.models.preferences import Preferences
from pystepper.state.policy import is_glitch, should_persist, steps_today
from pystepper.store.base import StepStore


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StepTracker:
    """Turns raw counter readings into durable, day-scoped step totals.

    Usage::

        tracker = StepTracker(db, refresher=DisplayRefresher(surface, db))
        tracker.reconcile()
        tracker.on_reading(1234.0)
        tracker.steps_today()
    """

    def __init__(
        self,
        store: StepStore,
        *,
        refresher: DisplayRefresher | None = None,
        clock: Callable[[], datetime] = _utcnow,
        tz: tzinfo = UTC,
        step_delta_threshold: int = STEP_DELTA_THRESHOLD,
        save_interval: timedelta = SAVE_INTERVAL,
        max_value: int = MAX_COUNTER_VALUE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._refresher = refresher
        self._clock = clock
        self._tz = tz
        self._step_delta_threshold = step_delta_threshold
        self._save_interval = save_interval
        self._max_value = max_value
        self._logger = logger or logging.getLogger(__name__)
        self._steps = 0
        self._checkpoint = Checkpoint()
        # Baselines are immutable once written, so hits can be kept forever.
        self._baselines: dict[date, int] = {}

    @property
    def steps(self) -> int:
        """Latest accepted counter value of this boot session."""
        return self._steps

    @property
    def checkpoint(self) -> Checkpoint:
        return self._checkpoint

    def today(self) -> date:
        return local_day(self._clock(), self._tz)

    # ------------------------------------------------------------------
    # Counter input
    # ------------------------------------------------------------------

    def on_reading(self, raw: float, accuracy: int | None = None) -> bool:
        """Accept one counter value.

        Returns whether a checkpoint was written. Glitch values are dropped
        without touching any state.
        """
        if is_glitch(raw, max_value=self._max_value):
            self._logger.debug("Discarding counter glitch value=%s", raw)
            return False
        self._steps = int(raw)
        return self.checkpoint_if_due()

    def checkpoint_if_due(self) -> bool:
        """Persist when the policy says so; refresh the display either way."""
        now = self._clock()
        if should_persist(
            steps=self._steps,
            checkpoint=self._checkpoint,
            now=now,
            step_delta_threshold=self._step_delta_threshold,
            save_interval=self._save_interval,
        ):
            return self.persist()
        self.refresh_display()
        return False

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _write(self, now: datetime) -> bool:
        steps = self._steps
        today = local_day(now, self._tz)
        try:
            with self._store.transaction() as tx:
                baseline = tx.get_steps(today)
                if baseline is None:
                    tx.insert_new_day(today, steps)
                    baseline = steps
                tx.save_current_steps(steps, now)
        except StepperStoreError:
            self._logger.warning("Checkpoint write failed steps=%s", steps, exc_info=True)
            return False

        self._baselines[today] = baseline
        self._checkpoint = Checkpoint(saved_steps=steps, saved_at=now)
        self._logger.debug("Checkpoint written steps=%s day=%s baseline=%s", steps, today, baseline)
        return True

    def persist(self) -> bool:
        """Write baseline (first time today) and checkpoint, then refresh the display.

        Returns whether the write happened.
        """
        written = self._write(self._clock())
        self.refresh_display()
        return written

    def flush(self) -> bool:
        """Write the current count regardless of thresholds (used at shutdown)."""
        if self._steps <= 0:
            return False
        return self._write(self._clock())

    def reconcile(self) -> None:
        """Adopt what the store knows.

        Another process instance may have saved a newer checkpoint, and a
        freshly started process knows nothing yet. The store wins when its
        checkpoint is at least as recent; a session count of 0 is seeded
        from the stored value.
        """
        try:
            with self._store.transaction() as tx:
                stored = tx.get_checkpoint()
        except StepperStoreError:
            self._logger.warning("Could not load checkpoint", exc_info=True)
            return

        if stored is None:
            return
        if stored.saved_at >= self._checkpoint.saved_at:
            self._checkpoint = stored
        if self._steps == 0:
            self._steps = stored.saved_steps

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def _baseline(self, day: date) -> int | None:
        cached = self._baselines.get(day)
        if cached is not None:
            return cached
        try:
            with self._store.transaction() as tx:
                baseline = tx.get_steps(day)
        except StepperStoreError:
            self._logger.warning("Could not read baseline for %s", day, exc_info=True)
            return None
        if baseline is not None:
            self._baselines[day] = baseline
        return baseline

    def steps_today(self) -> int:
        """Steps counted since today's baseline; 0 when today has none yet."""
        return steps_today(self._steps, self._baseline(self.today()))

    def _display_steps(self) -> int:
        if self._steps != 0:
            return self._steps
        # Nothing seen this session: show the saved value rather than nothing.
        try:
            with self._store.transaction() as tx:
                return tx.get_current_steps()
        except StepperStoreError:
            self._logger.warning("Could not read saved steps", exc_info=True)
            return 0

    def _display_inputs(self) -> tuple[int, int]:
        steps = self._display_steps()
        return steps, steps_today(steps, self._baseline(self.today()))

    def display_state(self) -> DisplayState:
        """Current display state, without publishing it."""
        steps, today = self._display_inputs()
        if self._refresher is not None:
            return self._refresher.build(steps=steps, steps_today=today)
        return build_display_state(steps=steps, steps_today=today, preferences=Preferences())

    def refresh_display(self) -> DisplayState | None:
        if self._refresher is None:
            return None
        steps, today = self._display_inputs()
        return self._refresher.refresh(steps=steps, steps_today=today)
