"""Custom exception hierarchy for pystepper."""

from __future__ import annotations


class StepperError(Exception):
    """Base exception for all pystepper errors."""


class StepperConfigError(StepperError):
    """Invalid or missing configuration."""


class StepperStoreError(StepperError):
    """Persistent store failure (open, read, write or commit)."""


class StepperSourceError(StepperError):
    """Counter event source could not be registered or decoded."""


class StepperDisplayError(StepperError):
    """Display surface rejected or failed to deliver an update."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        surface: str = "",
    ) -> None:
        self.status_code = status_code
        self.surface = surface
        super().__init__(message)
