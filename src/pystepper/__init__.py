"""pystepper - durable daily step totals from a reboot-resetting step counter."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pystepper")
except PackageNotFoundError:
    __version__ = "0+local"
from pystepper.config import StepperConfig
from pystepper.coordinator import ScheduleCoordinator
from pystepper.display import DisplayRefresher, DisplaySurface, LoggingDisplay, MqttDisplay, WebhookDisplay
from pystepper.exceptions import (
    StepperConfigError,
    StepperDisplayError,
    StepperError,
    StepperSourceError,
    StepperStoreError,
)
from pystepper.models import Checkpoint, CounterReading, DisplayKind, DisplayState, Preferences
from pystepper.scheduling import AsyncioWakeScheduler, SignalShutdownNotifier
from pystepper.service import StepperService
from pystepper.sources import MqttCounterSource
from pystepper.state.events import CoordinatorState, LifecycleEvent, WakeReason
from pystepper.state.tracker import StepTracker
from pystepper.store import StepDatabase

__all__ = [
    "__version__",
    "AsyncioWakeScheduler",
    "Checkpoint",
    "CoordinatorState",
    "CounterReading",
    "DisplayKind",
    "DisplayRefresher",
    "DisplayState",
    "DisplaySurface",
    "LifecycleEvent",
    "LoggingDisplay",
    "MqttCounterSource",
    "MqttDisplay",
    "Preferences",
    "ScheduleCoordinator",
    "SignalShutdownNotifier",
    "StepDatabase",
    "StepTracker",
    "StepperConfig",
    "StepperConfigError",
    "StepperDisplayError",
    "StepperError",
    "StepperService",
    "StepperSourceError",
    "StepperStoreError",
    "WakeReason",
    "WebhookDisplay",
]
