"""Counter readings delivered over MQTT.

A threaded paho-mqtt runtime subscribes to the counter topic and hands
decoded readings to the asyncio loop. Listener calls always happen on the
loop thread, never on the network thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta
from typing import Any

import paho.mqtt.client as mqtt
from pydantic import ValidationError

from pystepper._mqtt import MqttBroker, build_client, reason_failed
from pystepper.exceptions import StepperSourceError
from pystepper.models.reading import CounterReading
from pystepper.sources.base import CounterListener


def decode_counter_payload(payload: bytes) -> CounterReading:
    """Parse a counter message: a JSON object or a bare number."""
    try:
        parsed = json.loads(payload.decode("utf-8").strip())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StepperSourceError(f"Counter payload is not JSON: {payload[:64]!r}") from exc
    try:
        return CounterReading.model_validate(parsed)
    except ValidationError as exc:
        raise StepperSourceError(f"Counter payload has no usable step value: {parsed!r}") from exc


class MqttCounterSource:
    """Counter source backed by one MQTT topic.

    The counter is cumulative, so batching keeps only the newest reading:
    the first reading after a quiet period is delivered at once, later ones
    within ``max_report_latency`` collapse into one delivery at the end of
    the window.
    """

    def __init__(
        self,
        broker: MqttBroker,
        topic: str,
        *,
        loop: asyncio.AbstractEventLoop,
        logger: logging.Logger | None = None,
    ) -> None:
        self._broker = broker
        self._topic = topic
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._listener: CounterListener | None = None
        self._latency = 0.0
        self._last_delivery = float("-inf")
        self._pending: CounterReading | None = None
        self._flush_handle: asyncio.TimerHandle | None = None

    @property
    def is_running(self) -> bool:
        return self._client is not None

    def register(self, listener: CounterListener, *, max_report_latency: timedelta) -> bool:
        """Connect and subscribe; replaces any previous registration."""
        self.stop()
        self._listener = listener
        self._latency = max(0.0, max_report_latency.total_seconds())

        client = build_client(self._broker, self._logger)

        def on_connect(c: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any) -> None:
            if reason_failed(reason_code):
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT subscribing topic=%s", self._topic)
            c.subscribe(self._topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self._handle_message(msg.payload)

        client.on_connect = on_connect
        client.on_message = on_message

        try:
            client.connect_async(self._broker.host, self._broker.port, keepalive=self._broker.keepalive)
            client.loop_start()
        except (OSError, ValueError) as exc:
            self._listener = None
            raise StepperSourceError(f"Cannot start MQTT counter source: {exc}") from exc

        self._client = client
        self._logger.debug(
            "MQTT counter source started host=%s port=%s topic=%s",
            self._broker.host,
            self._broker.port,
            self._topic,
        )
        return True

    def unregister(self, listener: CounterListener) -> None:
        if self._listener is not listener:
            return
        self.stop()

    def stop(self) -> None:
        """Disconnect and drop any reading still held back."""
        client = self._client
        self._client = None
        self._listener = None
        self._pending = None
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT counter source stopped")

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _handle_message(self, payload: bytes) -> None:
        """Network thread: decode and hand over to the loop."""
        try:
            reading = decode_counter_payload(payload)
        except StepperSourceError:
            self._logger.debug("Counter payload parse failure", exc_info=True)
            return
        try:
            self._loop.call_soon_threadsafe(self._deliver, reading)
        except RuntimeError:
            # Loop already closed during teardown.
            self._logger.debug("Dropping counter reading after loop shutdown")

    def _deliver(self, reading: CounterReading) -> None:
        if self._listener is None:
            return
        now = self._loop.time()
        if self._flush_handle is None and now - self._last_delivery >= self._latency:
            self._emit(reading)
            return

        self._pending = reading
        if self._flush_handle is None:
            delay = max(0.0, self._last_delivery + self._latency - now)
            self._flush_handle = self._loop.call_later(delay, self._flush)

    def _flush(self) -> None:
        self._flush_handle = None
        pending, self._pending = self._pending, None
        if pending is not None:
            self._emit(pending)

    def _emit(self, reading: CounterReading) -> None:
        listener = self._listener
        if listener is None:
            return
        self._last_delivery = self._loop.time()
        try:
            listener(reading.steps, reading.accuracy)
        except Exception:
            self._logger.warning("Counter listener failed", exc_info=True)
