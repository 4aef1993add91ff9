"""Counter event sources."""

from pystepper.sources.base import CounterListener, CounterSource
from pystepper.sources.mqtt import MqttCounterSource, decode_counter_payload

__all__ = [
    "CounterListener",
    "CounterSource",
    "MqttCounterSource",
    "decode_counter_payload",
]
