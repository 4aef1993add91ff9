"""Display surface publishing retained state to an MQTT topic."""

from __future__ import annotations

import logging
from typing import ClassVar

import paho.mqtt.client as mqtt

from pystepper._mqtt import MqttBroker, build_client
from pystepper.exceptions import StepperDisplayError
from pystepper.models.display import DisplayState


class MqttDisplay:
    """Keeps the latest display state as a retained message.

    Subscribers joining later still get the current progress, the same way
    an ongoing status indicator stays visible.
    """

    persistent: ClassVar[bool] = True

    def __init__(
        self,
        broker: MqttBroker,
        topic: str,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._broker = broker
        self._topic = topic
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None

    def _ensure_client(self) -> mqtt.Client:
        if self._client is not None:
            return self._client
        client = build_client(self._broker, self._logger)
        try:
            client.connect_async(self._broker.host, self._broker.port, keepalive=self._broker.keepalive)
            client.loop_start()
        except (OSError, ValueError) as exc:
            raise StepperDisplayError(f"Cannot connect display publisher: {exc}", surface="mqtt") from exc
        self._client = client
        return client

    def publish(self, state: DisplayState) -> None:
        client = self._ensure_client()
        info = client.publish(self._topic, state.model_dump_json(), qos=1, retain=True)
        if info.rc != mqtt.MQTT_ERR_SUCCESS and info.rc != mqtt.MQTT_ERR_NO_CONN:
            raise StepperDisplayError(f"MQTT publish failed rc={info.rc}", surface="mqtt")
        self._logger.debug("Display published topic=%s kind=%s", self._topic, state.kind)

    def close(self) -> None:
        client = self._client
        self._client = None
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
