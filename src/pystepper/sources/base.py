"""Counter source interface."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Protocol

CounterListener = Callable[[float, "int | None"], None]
"""Called with ``(value, accuracy)`` for every delivered reading."""


class CounterSource(Protocol):
    def register(self, listener: CounterListener, *, max_report_latency: timedelta) -> bool:
        """Start delivering readings to *listener*.

        Readings may be held back and coalesced for up to
        *max_report_latency*. Returns ``False`` when no counter is available.
        """
        ...

    def unregister(self, listener: CounterListener) -> None:
        """Stop delivering to *listener*. Unknown listeners are ignored."""
        ...
