"""Progress display: message building, refresh and surfaces."""

from pystepper.display.base import DisplaySurface
from pystepper.display.log import LoggingDisplay
from pystepper.display.message import build_display_state, format_count
from pystepper.display.mqtt import MqttDisplay
from pystepper.display.refresh import DisplayRefresher
from pystepper.display.selection import select_display
from pystepper.display.webhook import WebhookDisplay

__all__ = [
    "DisplayRefresher",
    "DisplaySurface",
    "LoggingDisplay",
    "MqttDisplay",
    "WebhookDisplay",
    "build_display_state",
    "format_count",
    "select_display",
]
