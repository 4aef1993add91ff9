"""Lifecycle coordination for the step tracker.

Owns:
- (re)registering the counter listener and the shutdown notification
- the periodic wake-up that checkpoints even without new readings
- the quick restart after the host removed the task
- the final flush at device shutdown

The coordinator has no step logic of its own; it only decides *when* the
tracker runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta, tzinfo

from pystepper._constants import MAX_REPORT_LATENCY, RESTART_DELAY, SAVE_INTERVAL
from pystepper.scheduling import ShutdownNotifier, WakeScheduler
from pystepper.sources.base import CounterListener, CounterSource
from pystepper.state.events import CoordinatorState, LifecycleEvent, WakeReason
from pystepper.state.policy import next_wake_at
from pystepper.state.tracker import StepTracker


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ScheduleCoordinator:
    """Explicit lifecycle state machine around a :class:`StepTracker`.

    Every transition is a method and can be driven directly, or through
    :meth:`handle` with a :class:`LifecycleEvent`. Start may be entered any
    number of times; it always replaces earlier registrations and the
    pending periodic wake-up.
    """

    def __init__(
        self,
        tracker: StepTracker,
        *,
        scheduler: WakeScheduler,
        source: CounterSource | None = None,
        shutdown_notifier: ShutdownNotifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
        tz: tzinfo = UTC,
        save_interval: timedelta = SAVE_INTERVAL,
        restart_delay: timedelta = RESTART_DELAY,
        max_report_latency: timedelta = MAX_REPORT_LATENCY,
        on_shutdown: Callable[[], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._tracker = tracker
        self._scheduler = scheduler
        self._source = source
        self._shutdown_notifier = shutdown_notifier
        self._clock = clock
        self._tz = tz
        self._save_interval = save_interval
        self._restart_delay = restart_delay
        self._max_report_latency = max_report_latency
        self._on_shutdown = on_shutdown
        self._logger = logger or logging.getLogger(__name__)
        self._state = CoordinatorState.IDLE
        # Bound once so unregister() sees the same object register() got.
        self._listener: CounterListener = tracker.on_reading

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def tracker(self) -> StepTracker:
        return self._tracker

    def handle(self, event: LifecycleEvent) -> None:
        """Dispatch a named lifecycle event to its transition."""
        if event == LifecycleEvent.START:
            self.start()
        elif event == LifecycleEvent.WAKE:
            self.on_wake(WakeReason.PERIODIC)
        elif event == LifecycleEvent.TASK_REMOVED:
            self.task_removed()
        elif event == LifecycleEvent.SHUTDOWN:
            self.shutdown()
        elif event == LifecycleEvent.STOP:
            self.stop()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start (or restart): reconcile, re-register, checkpoint if due, arm."""
        self._logger.info("Step tracking start (from %s)", self._state)
        self._tracker.reconcile()
        self._register_counter()
        self._register_shutdown()
        try:
            written = self._tracker.checkpoint_if_due()
        except Exception:
            self._logger.warning("Start checkpoint failed", exc_info=True)
        else:
            self._logger.debug("Start checkpoint written=%s steps=%s", written, self._tracker.steps)
        self._scheduler.cancel(WakeReason.RESTART)
        self._arm()

    def on_wake(self, reason: WakeReason) -> None:
        """Scheduler callback."""
        if self._state == CoordinatorState.SHUT_DOWN:
            self._logger.debug("Ignoring wake-up after shutdown reason=%s", reason)
            return
        self.start()

    def task_removed(self) -> None:
        """The host removed the running task: come back quickly."""
        if self._state == CoordinatorState.SHUT_DOWN:
            self._logger.debug("Ignoring task removal after shutdown")
            return
        self._logger.info("Task removed, restart in %.1fs", self._restart_delay.total_seconds())
        self._state = CoordinatorState.INTERRUPTED
        self._schedule(self._clock() + self._restart_delay, WakeReason.RESTART)

    def shutdown(self) -> None:
        """Device is powering off: save what we have and stop listening."""
        if self._state == CoordinatorState.SHUT_DOWN:
            return
        self._logger.info("Device shutdown, flushing steps=%s", self._tracker.steps)
        self._tracker.flush()
        self._teardown()
        self._scheduler.cancel()
        self._state = CoordinatorState.SHUT_DOWN
        if self._on_shutdown is not None:
            self._on_shutdown()

    def stop(self) -> None:
        """Process teardown without a device shutdown."""
        if self._state == CoordinatorState.SHUT_DOWN:
            return
        self._logger.info("Step tracking stopped")
        self._teardown()
        self._scheduler.cancel()
        self._state = CoordinatorState.IDLE

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        at = next_wake_at(self._clock(), self._tz, self._save_interval)
        if self._schedule(at, WakeReason.PERIODIC):
            self._state = CoordinatorState.ARMED

    def _schedule(self, at: datetime, reason: WakeReason) -> bool:
        try:
            self._scheduler.schedule_wake(at, reason=reason)
        except Exception:
            self._logger.warning("Could not schedule %s wake-up", reason, exc_info=True)
            return False
        return True

    def _register_counter(self) -> None:
        source = self._source
        if source is None:
            self._logger.debug("No counter source, tracking stored values only")
            return
        try:
            source.unregister(self._listener)
        except Exception:
            self._logger.debug("Counter listener unregister failed", exc_info=True)
        try:
            if not source.register(self._listener, max_report_latency=self._max_report_latency):
                self._logger.warning("No step counter available")
        except Exception:
            self._logger.warning("Counter listener registration failed", exc_info=True)

    def _register_shutdown(self) -> None:
        notifier = self._shutdown_notifier
        if notifier is None:
            return
        try:
            notifier.unregister()
        except Exception:
            self._logger.debug("Shutdown notification unregister failed", exc_info=True)
        try:
            notifier.register(self.shutdown)
        except Exception:
            self._logger.warning("Shutdown notification registration failed", exc_info=True)

    def _teardown(self) -> None:
        if self._source is not None:
            try:
                self._source.unregister(self._listener)
            except Exception:
                self._logger.debug("Counter listener unregister failed", exc_info=True)
        if self._shutdown_notifier is not None:
            try:
                self._shutdown_notifier.unregister()
            except Exception:
                self._logger.debug("Shutdown notification unregister failed", exc_info=True)
