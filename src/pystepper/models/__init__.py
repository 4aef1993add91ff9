"""Data models for pystepper."""

from pystepper.models._base import EpochTimestamp, StepperBaseModel, parse_epoch_timestamp
from pystepper.models.checkpoint import Checkpoint
from pystepper.models.display import DisplayKind, DisplayState
from pystepper.models.preferences import Preferences
from pystepper.models.reading import CounterReading

__all__ = [
    "Checkpoint",
    "CounterReading",
    "DisplayKind",
    "DisplayState",
    "EpochTimestamp",
    "Preferences",
    "StepperBaseModel",
    "parse_epoch_timestamp",
]
