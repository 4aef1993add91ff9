"""Last durably written step count."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from pystepper._constants import EPOCH
from pystepper.models._base import StepperBaseModel


class Checkpoint(StepperBaseModel):
    """The count and wall-clock time of the last successful save."""

    saved_steps: int = Field(default=0, ge=0)
    saved_at: datetime = EPOCH
