"""Wake-up scheduling and shutdown notification.

Both are host facilities from the core's point of view. The asyncio and
signal based implementations below cover a long-running Python process;
tests and other hosts supply their own objects with the same shape.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Protocol

from pystepper.state.events import WakeReason

WakeCallback = Callable[[WakeReason], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class WakeScheduler(Protocol):
    def schedule_wake(self, at: datetime, *, reason: WakeReason = WakeReason.PERIODIC) -> None:
        """Request one wake-up at wall-clock time *at*.

        Replaces the pending wake-up with the same *reason*, if any.
        """
        ...

    def cancel(self, reason: WakeReason | None = None) -> None:
        """Cancel the pending wake-up for *reason*, or all of them."""
        ...

    def pending(self, reason: WakeReason = WakeReason.PERIODIC) -> datetime | None:
        ...


class ShutdownNotifier(Protocol):
    def register(self, callback: Callable[[], None]) -> None:
        ...

    def unregister(self) -> None:
        ...


class AsyncioWakeScheduler:
    """Event-loop timers, at most one per :class:`WakeReason`.

    Wall-clock targets are converted to a loop delay when scheduled; a
    target in the past fires on the next loop iteration.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_wake: WakeCallback,
        *,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_wake = on_wake
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._handles: dict[WakeReason, tuple[datetime, asyncio.TimerHandle]] = {}

    def schedule_wake(self, at: datetime, *, reason: WakeReason = WakeReason.PERIODIC) -> None:
        self.cancel(reason)
        delay = max(0.0, (at - self._clock()).total_seconds())
        handle = self._loop.call_later(delay, self._fire, reason)
        self._handles[reason] = (at, handle)
        self._logger.debug("Wake-up scheduled reason=%s at=%s delay=%.1fs", reason, at.isoformat(), delay)

    def cancel(self, reason: WakeReason | None = None) -> None:
        reasons = list(self._handles) if reason is None else [reason]
        for key in reasons:
            entry = self._handles.pop(key, None)
            if entry is not None:
                entry[1].cancel()

    def pending(self, reason: WakeReason = WakeReason.PERIODIC) -> datetime | None:
        entry = self._handles.get(reason)
        return None if entry is None else entry[0]

    def _fire(self, reason: WakeReason) -> None:
        self._handles.pop(reason, None)
        self._logger.debug("Wake-up fired reason=%s", reason)
        self._on_wake(reason)


class SignalShutdownNotifier:
    """Reports device shutdown through POSIX signals (SIGTERM by default)."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        *,
        signals: Iterable[signal.Signals] = (signal.SIGTERM,),
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._signals = tuple(signals)
        self._logger = logger or logging.getLogger(__name__)
        self._registered: list[signal.Signals] = []

    @property
    def is_registered(self) -> bool:
        return bool(self._registered)

    def register(self, callback: Callable[[], None]) -> None:
        self.unregister()
        for sig in self._signals:
            try:
                self._loop.add_signal_handler(sig, callback)
            except (NotImplementedError, RuntimeError, ValueError):
                # No signal support (e.g. not the main thread or not POSIX).
                self._logger.debug("Cannot watch signal %s", sig, exc_info=True)
                continue
            self._registered.append(sig)

    def unregister(self) -> None:
        registered, self._registered = self._registered, []
        for sig in registered:
            try:
                self._loop.remove_signal_handler(sig)
            except Exception:
                self._logger.debug("Signal handler removal failed for %s", sig, exc_info=True)
