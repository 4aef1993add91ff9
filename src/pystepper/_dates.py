"""Calendar helpers: "today" and the next local midnight in a given zone."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo


def local_day(now: datetime, tz: tzinfo) -> date:
    """Return the calendar date of *now* as seen in *tz*."""
    return now.astimezone(tz).date()


def start_of_next_day(now: datetime, tz: tzinfo) -> datetime:
    """Return the local midnight that follows *now* in *tz*.

    Built from the calendar date rather than ``now + 24h`` so that DST
    transitions land on the real midnight.
    """
    tomorrow = local_day(now, tz) + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=tz)
