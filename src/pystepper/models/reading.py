"""Raw counter readings as delivered by a counter source."""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from pystepper.models._base import EpochTimestamp, StepperBaseModel


class CounterReading(StepperBaseModel):
    """One cumulative step-counter value, counted since the last device boot.

    The value is kept as reported. Out-of-range values are sensor glitches
    that the tracker discards, so they must survive parsing.
    """

    steps: float = Field(description="Cumulative count since boot, as reported")
    accuracy: int | None = Field(default=None, description="Sensor accuracy hint, unused by the core")
    timestamp: EpochTimestamp = None

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_value(cls, values: Any) -> Any:
        # Sources may publish the bare number instead of an object.
        if isinstance(values, (int, float)) and not isinstance(values, bool):
            return {"steps": values}
        if isinstance(values, dict) and "steps" not in values:
            for key in ("value", "count"):
                if key in values:
                    return {**values, "steps": values[key]}
        return values
