"""Async service wiring the step tracker to concrete collaborators."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pystepper._mqtt import MqttBroker
from pystepper.config import StepperConfig
from pystepper.coordinator import ScheduleCoordinator
from pystepper.display.base import DisplaySurface
from pystepper.display.mqtt import MqttDisplay
from pystepper.display.refresh import DisplayRefresher
from pystepper.display.selection import select_display
from pystepper.display.webhook import WebhookDisplay
from pystepper.exceptions import StepperError
from pystepper.scheduling import AsyncioWakeScheduler, ShutdownNotifier, SignalShutdownNotifier, WakeScheduler
from pystepper.sources.base import CounterSource
from pystepper.sources.mqtt import MqttCounterSource
from pystepper.state.events import CoordinatorState, WakeReason
from pystepper.state.tracker import StepTracker
from pystepper.store.sqlite import StepDatabase

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StepperService:
    """Long-running step tracking service.

    Usage::

        async with StepperService(StepperConfig.from_env()) as service:
            service.start()
            await service.wait_closed()

    Every collaborator can be passed in; anything omitted is built from the
    configuration when the context is entered.
    """

    def __init__(
        self,
        config: StepperConfig,
        *,
        store: StepDatabase | None = None,
        source: CounterSource | None = None,
        display: DisplaySurface | None = None,
        scheduler: WakeScheduler | None = None,
        shutdown_notifier: ShutdownNotifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._clock = clock
        self._store = store
        self._source = source
        self._display = display
        self._scheduler = scheduler
        self._shutdown_notifier = shutdown_notifier
        self._owned_source = source is None
        self._owned_display = display is None
        self._tracker: StepTracker | None = None
        self._coordinator: ScheduleCoordinator | None = None
        self._closed: asyncio.Event | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StepperService:
        config = self._config
        loop = asyncio.get_running_loop()
        self._closed = asyncio.Event()

        if self._store is None:
            self._store = StepDatabase(config.database_path)
        if self._display is None:
            self._display = select_display(config, loop=loop)
        if self._source is None and config.mqtt_host:
            self._source = MqttCounterSource(
                MqttBroker.from_config(config, role="counter"),
                config.mqtt_counter_topic,
                loop=loop,
            )
        if self._scheduler is None:
            self._scheduler = AsyncioWakeScheduler(loop, self._on_wake, clock=self._clock)
        if self._shutdown_notifier is None:
            self._shutdown_notifier = SignalShutdownNotifier(loop, signals=(signal.SIGTERM,))

        self._tracker = StepTracker(
            self._store,
            refresher=DisplayRefresher(self._display, self._store),
            clock=self._clock,
            tz=config.tz,
            step_delta_threshold=config.step_delta_threshold,
            save_interval=config.save_interval_delta,
        )
        self._coordinator = ScheduleCoordinator(
            self._tracker,
            scheduler=self._scheduler,
            source=self._source,
            shutdown_notifier=self._shutdown_notifier,
            clock=self._clock,
            tz=config.tz,
            save_interval=config.save_interval_delta,
            restart_delay=config.restart_delay_delta,
            max_report_latency=config.max_report_latency_delta,
            on_shutdown=self._closed.set,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._coordinator is not None:
            self._coordinator.stop()
        await self._close_owned()
        self._coordinator = None
        self._tracker = None

    async def _close_owned(self) -> None:
        if self._owned_display:
            if isinstance(self._display, WebhookDisplay):
                await self._display.aclose()
            elif isinstance(self._display, MqttDisplay):
                self._display.close()
            self._display = None
        if self._owned_source and isinstance(self._source, MqttCounterSource):
            self._source.stop()
            self._source = None

    # ------------------------------------------------------------------
    # Host events
    # ------------------------------------------------------------------

    def _require_coordinator(self) -> ScheduleCoordinator:
        if self._coordinator is None:
            raise StepperError("Service not initialized. Use 'async with StepperService(...) as service:'")
        return self._coordinator

    def _on_wake(self, reason: WakeReason) -> None:
        coordinator = self._coordinator
        if coordinator is None:
            _logger.debug("Wake-up after close ignored reason=%s", reason)
            return
        coordinator.on_wake(reason)

    @property
    def tracker(self) -> StepTracker:
        return self._require_coordinator().tracker

    @property
    def state(self) -> CoordinatorState:
        return self._require_coordinator().state

    def start(self) -> None:
        self._require_coordinator().start()

    def task_removed(self) -> None:
        self._require_coordinator().task_removed()

    def shutdown(self) -> None:
        self._require_coordinator().shutdown()

    async def wait_closed(self) -> None:
        """Block until the device shutdown transition ran."""
        if self._closed is None:
            raise StepperError("Service not initialized. Use 'async with StepperService(...) as service:'")
        await self._closed.wait()
