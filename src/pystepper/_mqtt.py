"""Internal MQTT connection helpers shared by the counter source and display."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pystepper.config import StepperConfig
from pystepper.exceptions import StepperConfigError


@dataclass(frozen=True)
class MqttBroker:
    """Broker connection details."""

    host: str
    port: int = 1883
    client_id: str = "pystepper"
    username: str | None = None
    password: str | None = None
    tls: bool = False
    keepalive: int = 120

    @classmethod
    def from_config(cls, config: StepperConfig, *, role: str) -> MqttBroker:
        if not config.mqtt_host:
            raise StepperConfigError("mqtt_host is not configured")
        return cls(
            host=config.mqtt_host,
            port=config.mqtt_port,
            client_id=f"{config.mqtt_client_id}-{role}",
            username=config.mqtt_username,
            password=config.mqtt_password,
            tls=config.mqtt_tls,
            keepalive=config.mqtt_keepalive,
        )


def build_client(broker: MqttBroker, logger: logging.Logger) -> mqtt.Client:
    """Create a configured, not yet connected paho client."""
    client = mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        client_id=broker.client_id,
        protocol=mqtt.MQTTv311,
    )
    client.enable_logger(logger)
    if broker.username:
        client.username_pw_set(broker.username, broker.password)
    if broker.tls:
        client.tls_set()
    return client


def reason_failed(reason_code: Any) -> bool:
    """Whether a paho v2 reason code reports failure."""
    is_failure = getattr(reason_code, "is_failure", None)
    if isinstance(is_failure, bool):
        return is_failure
    return getattr(reason_code, "value", reason_code) != 0
