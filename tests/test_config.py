from __future__ import annotations

from datetime import timedelta

import pytest

from pystepper._mqtt import MqttBroker
from pystepper.config import StepperConfig
from pystepper.exceptions import StepperConfigError


def test_defaults() -> None:
    config = StepperConfig()

    assert config.step_delta_threshold == 30
    assert config.save_interval_delta == timedelta(minutes=15)
    assert config.restart_delay_delta == timedelta(milliseconds=500)
    assert config.max_report_latency_delta == timedelta(minutes=2)
    assert config.display_backend == "log"
    assert str(config.tz) == "UTC"


def test_from_env_reads_stepper_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEPPER_DATABASE_PATH", "/tmp/steps.db")
    monkeypatch.setenv("STEPPER_TIME_ZONE", "Europe/Amsterdam")
    monkeypatch.setenv("STEPPER_STEP_DELTA_THRESHOLD", "50")
    monkeypatch.setenv("STEPPER_SAVE_INTERVAL", "60.5")
    monkeypatch.setenv("STEPPER_MQTT_HOST", "broker.local")
    monkeypatch.setenv("STEPPER_MQTT_TLS", "yes")

    config = StepperConfig.from_env()

    assert config.database_path == "/tmp/steps.db"
    assert config.time_zone == "Europe/Amsterdam"
    assert config.step_delta_threshold == 50
    assert config.save_interval == 60.5
    assert config.mqtt_host == "broker.local"
    assert config.mqtt_tls is True


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEPPER_DATABASE_PATH", "/tmp/env.db")
    monkeypatch.setenv("STEPPER_MQTT_TLS", "true")

    config = StepperConfig.from_env(database_path="/tmp/explicit.db", mqtt_tls=False)

    assert config.database_path == "/tmp/explicit.db"
    assert config.mqtt_tls is False


def test_invalid_numeric_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEPPER_MQTT_PORT", "eighteen")
    with pytest.raises(StepperConfigError, match="Invalid numeric"):
        StepperConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"step_delta_threshold": -1},
        {"save_interval": 0},
        {"restart_delay": -0.1},
        {"max_report_latency": -1},
        {"display_backend": "lcd"},
        {"display_backend": "mqtt"},
        {"display_backend": "webhook"},
        {"time_zone": "Mars/Olympus_Mons"},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(StepperConfigError):
        StepperConfig(**kwargs)  # type: ignore[arg-type]


def test_broker_from_config() -> None:
    config = StepperConfig(mqtt_host="broker.local", mqtt_port=8883, mqtt_tls=True, mqtt_username="u")

    broker = MqttBroker.from_config(config, role="counter")

    assert broker.host == "broker.local"
    assert broker.port == 8883
    assert broker.client_id == "pystepper-counter"
    assert broker.tls is True
    assert broker.username == "u"


def test_broker_requires_host() -> None:
    with pytest.raises(StepperConfigError):
        MqttBroker.from_config(StepperConfig(), role="display")
