"""Base model and shared validators for pystepper data models.

Every model inherits from :class:`StepperBaseModel`, which makes
instances immutable and ignores unknown keys so that payloads from
newer producers still validate.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_epoch_timestamp(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    Datetimes pass through; naive ones are taken as UTC.
    """
    if value is None:
        return value
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            return parse_epoch_timestamp(datetime.fromisoformat(value))
        except ValueError:
            pass
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts = ts / 1000
    return datetime.fromtimestamp(ts, tz=UTC)


EpochTimestamp = Annotated[datetime | None, BeforeValidator(parse_epoch_timestamp)]
"""Annotated type that coerces epoch numbers (seconds or ms) and ISO strings to UTC datetimes."""


class StepperBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
