"""Build the user-facing progress message."""

from __future__ import annotations

import logging

from pystepper.models.display import DisplayKind, DisplayState
from pystepper.models.preferences import Preferences

_logger = logging.getLogger(__name__)


def format_count(value: int) -> str:
    """Group thousands: ``12345`` -> ``"12,345"``."""
    return f"{value:,}"


def _render(template: str, fallback: str, *args: str) -> str:
    # str.format ignores surplus positional arguments, so templates may use
    # any subset of the values they are offered.
    try:
        return template.format(*args)
    except Exception:
        _logger.warning("Invalid message template %r, using default", template, exc_info=True)
        return fallback.format(*args)


def build_display_state(*, steps: int, steps_today: int, preferences: Preferences) -> DisplayState:
    """Derive the display from the session count, today's steps and preferences.

    - nothing counted yet -> "your progress will be shown" text
    - goal reached (an unset goal counts as 1) -> goal reached text
    - otherwise -> steps to go text
    """
    title = preferences.is_counting_text
    goal = preferences.goal
    defaults = Preferences()

    if steps <= 0:
        return DisplayState(kind=DisplayKind.NO_DATA, title=title, text=preferences.your_progress_text, goal=goal)

    if steps_today >= max(goal, 1):
        text = _render(
            preferences.goal_reached_text,
            defaults.goal_reached_text,
            format_count(steps_today),
            format_count(goal),
        )
        return DisplayState(
            kind=DisplayKind.GOAL_REACHED,
            title=title,
            text=text,
            steps_today=steps_today,
            goal=goal,
            goal_reached=True,
        )

    text = _render(
        preferences.steps_to_go_text,
        defaults.steps_to_go_text,
        format_count(goal - steps_today),
        format_count(steps_today),
        format_count(goal),
    )
    return DisplayState(
        kind=DisplayKind.STEPS_TO_GO,
        title=title,
        text=text,
        steps_today=steps_today,
        goal=goal,
    )
