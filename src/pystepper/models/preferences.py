"""User preferences read by the display refresh."""

from __future__ import annotations

from pydantic import Field

from pystepper._constants import (
    DEFAULT_GOAL,
    DEFAULT_GOAL_REACHED_TEXT,
    DEFAULT_IS_COUNTING_TEXT,
    DEFAULT_STEPS_TO_GO_TEXT,
    DEFAULT_YOUR_PROGRESS_TEXT,
    PREF_GOAL,
    PREF_GOAL_REACHED_TEXT,
    PREF_IS_COUNTING_TEXT,
    PREF_NOTIFICATION,
    PREF_STEPS_TO_GO_TEXT,
    PREF_YOUR_PROGRESS_TEXT,
)
from pystepper.models._base import StepperBaseModel


class Preferences(StepperBaseModel):
    """Flat key/value preferences with defaults.

    Field aliases are the stored keys, so a ``{key: value}`` mapping read
    from the store validates directly. Values stored as text are coerced
    (``"10000"`` -> ``10000``, ``"false"`` -> ``False``).

    Message templates are :meth:`str.format` strings with positional fields:

    * ``goal_reached_text``: ``{0}`` steps today, ``{1}`` goal
    * ``steps_to_go_text``: ``{0}`` remaining, ``{1}`` steps today, ``{2}`` goal
    """

    goal: int = Field(default=DEFAULT_GOAL, alias=PREF_GOAL)
    goal_reached_text: str = Field(default=DEFAULT_GOAL_REACHED_TEXT, alias=PREF_GOAL_REACHED_TEXT)
    steps_to_go_text: str = Field(default=DEFAULT_STEPS_TO_GO_TEXT, alias=PREF_STEPS_TO_GO_TEXT)
    your_progress_text: str = Field(default=DEFAULT_YOUR_PROGRESS_TEXT, alias=PREF_YOUR_PROGRESS_TEXT)
    is_counting_text: str = Field(default=DEFAULT_IS_COUNTING_TEXT, alias=PREF_IS_COUNTING_TEXT)
    notification: bool = Field(default=True, alias=PREF_NOTIFICATION)
