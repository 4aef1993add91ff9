"""Display refresh: preferences + numbers -> state -> surface."""

from __future__ import annotations

import logging

from pystepper.display.base import DisplaySurface
from pystepper.display.message import build_display_state
from pystepper.models.display import DisplayState
from pystepper.models.preferences import Preferences
from pystepper.store.base import PreferencesSource


class DisplayRefresher:
    """Publishes the current progress to one display surface.

    Refreshing is best-effort: preference read failures fall back to the
    defaults and publish failures are logged, never raised.
    """

    def __init__(
        self,
        surface: DisplaySurface,
        preferences: PreferencesSource | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._surface = surface
        self._preferences = preferences
        self._logger = logger or logging.getLogger(__name__)
        self._last: DisplayState | None = None

    @property
    def surface(self) -> DisplaySurface:
        return self._surface

    @property
    def last_state(self) -> DisplayState | None:
        """Most recent state handed to the surface."""
        return self._last

    def _load_preferences(self) -> Preferences:
        if self._preferences is None:
            return Preferences()
        try:
            return self._preferences.load_preferences()
        except Exception:
            self._logger.warning("Preferences unavailable, using defaults", exc_info=True)
            return Preferences()

    def build(self, *, steps: int, steps_today: int) -> DisplayState:
        return build_display_state(steps=steps, steps_today=steps_today, preferences=self._load_preferences())

    def refresh(self, *, steps: int, steps_today: int) -> DisplayState:
        """Rebuild the display state and publish it when the surface allows."""
        preferences = self._load_preferences()
        state = build_display_state(steps=steps, steps_today=steps_today, preferences=preferences)

        if not self._surface.persistent and not preferences.notification:
            self._logger.debug("Notifications disabled, display not published")
            return state

        try:
            self._surface.publish(state)
            self._last = state
        except Exception:
            self._logger.warning("Display update failed", exc_info=True)
        return state
