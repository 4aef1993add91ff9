"""Display surface interface."""

from __future__ import annotations

from typing import ClassVar, Protocol

from pystepper.models.display import DisplayState


class DisplaySurface(Protocol):
    """Where the progress display goes.

    ``persistent`` surfaces behave like an ongoing status indicator and are
    always updated. Transient ones (push notifications) are only updated
    while the user has notifications enabled.
    """

    persistent: ClassVar[bool]

    def publish(self, state: DisplayState) -> None:
        """Replace the displayed state. Fire-and-forget."""
        ...
