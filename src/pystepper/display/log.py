"""Display surface that writes the progress to the log."""

from __future__ import annotations

import logging
from typing import ClassVar

from pystepper.models.display import DisplayState


class LoggingDisplay:
    """Logs every display change at INFO. Unchanged states are not repeated."""

    persistent: ClassVar[bool] = True

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("pystepper.display")
        self._last: DisplayState | None = None

    def publish(self, state: DisplayState) -> None:
        if state == self._last:
            return
        self._last = state
        self._logger.info("%s: %s", state.title, state.text)
