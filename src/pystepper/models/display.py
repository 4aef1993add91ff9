"""Derived display state."""

from __future__ import annotations

from enum import StrEnum

from pystepper.models._base import StepperBaseModel


class DisplayKind(StrEnum):
    NO_DATA = "no_data"
    GOAL_REACHED = "goal_reached"
    STEPS_TO_GO = "steps_to_go"


class DisplayState(StepperBaseModel):
    """What the progress display shows. Recomputed on every refresh, never stored."""

    kind: DisplayKind
    title: str
    text: str
    steps_today: int = 0
    goal: int = 0
    goal_reached: bool = False
