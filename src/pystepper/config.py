"""Service configuration for pystepper."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pystepper._constants import MAX_REPORT_LATENCY, RESTART_DELAY, SAVE_INTERVAL, STEP_DELTA_THRESHOLD
from pystepper.exceptions import StepperConfigError

DISPLAY_BACKENDS: frozenset[str] = frozenset({"log", "mqtt", "webhook"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _load_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise StepperConfigError(f"Unknown time zone {name!r}") from exc


@dataclasses.dataclass(frozen=True)
class StepperConfig:
    """Service configuration.

    Parameters
    ----------
    database_path : str
        SQLite file holding daily baselines, the checkpoint and preferences.
        Shared by every process instance of the service.
    time_zone : str
        IANA time zone that defines calendar days and midnight.
    step_delta_threshold : int
        Write a checkpoint once the count moved more than this many steps.
    save_interval : float
        Seconds between forced checkpoints while steps are counted; also
        the periodic wake-up interval.
    restart_delay : float
        Seconds before the restart wake-up after the task was removed.
    max_report_latency : float
        Seconds a counter source may hold readings back (batching window).
    display_backend : str
        ``"log"``, ``"mqtt"`` or ``"webhook"``.
    mqtt_host : str or None
        Broker host. Enables the MQTT counter source when set.
    mqtt_port : int
        Broker port.
    mqtt_username, mqtt_password : str or None
        Broker credentials.
    mqtt_tls : bool
        Use TLS for the broker connection.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_client_id : str
        Client id prefix; ``-counter`` / ``-display`` are appended.
    mqtt_counter_topic : str
        Topic carrying raw counter readings.
    mqtt_display_topic : str
        Topic receiving retained display state.
    webhook_url : str or None
        Endpoint receiving display state as JSON (``webhook`` backend).
    webhook_timeout : float
        Total timeout for one webhook request in seconds.
    """

    database_path: str = "pystepper.db"
    time_zone: str = "UTC"
    step_delta_threshold: int = STEP_DELTA_THRESHOLD
    save_interval: float = SAVE_INTERVAL.total_seconds()
    restart_delay: float = RESTART_DELAY.total_seconds()
    max_report_latency: float = MAX_REPORT_LATENCY.total_seconds()
    display_backend: str = "log"
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = False
    mqtt_keepalive: int = 120
    mqtt_client_id: str = "pystepper"
    mqtt_counter_topic: str = "pystepper/counter"
    mqtt_display_topic: str = "pystepper/display"
    webhook_url: str | None = None
    webhook_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.step_delta_threshold < 0:
            raise StepperConfigError("step_delta_threshold must not be negative")
        if self.save_interval <= 0:
            raise StepperConfigError("save_interval must be positive")
        if self.restart_delay < 0:
            raise StepperConfigError("restart_delay must not be negative")
        if self.max_report_latency < 0:
            raise StepperConfigError("max_report_latency must not be negative")
        if self.display_backend not in DISPLAY_BACKENDS:
            raise StepperConfigError(
                f"display_backend must be one of {sorted(DISPLAY_BACKENDS)}, got {self.display_backend!r}"
            )
        if self.display_backend == "mqtt" and not self.mqtt_host:
            raise StepperConfigError("display_backend 'mqtt' requires mqtt_host")
        if self.display_backend == "webhook" and not self.webhook_url:
            raise StepperConfigError("display_backend 'webhook' requires webhook_url")
        _load_zone(self.time_zone)

    @property
    def tz(self) -> tzinfo:
        """The configured time zone."""
        return _load_zone(self.time_zone)

    @property
    def save_interval_delta(self) -> timedelta:
        return timedelta(seconds=self.save_interval)

    @property
    def restart_delay_delta(self) -> timedelta:
        return timedelta(seconds=self.restart_delay)

    @property
    def max_report_latency_delta(self) -> timedelta:
        return timedelta(seconds=self.max_report_latency)

    @classmethod
    def from_env(cls, **overrides: Any) -> StepperConfig:
        """Create configuration from environment variables.

        Reads optional ``STEPPER_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StepperConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "STEPPER_DATABASE_PATH": "database_path",
            "STEPPER_TIME_ZONE": "time_zone",
            "STEPPER_DISPLAY_BACKEND": "display_backend",
            "STEPPER_MQTT_HOST": "mqtt_host",
            "STEPPER_MQTT_USERNAME": "mqtt_username",
            "STEPPER_MQTT_PASSWORD": "mqtt_password",
            "STEPPER_MQTT_CLIENT_ID": "mqtt_client_id",
            "STEPPER_MQTT_COUNTER_TOPIC": "mqtt_counter_topic",
            "STEPPER_MQTT_DISPLAY_TOPIC": "mqtt_display_topic",
            "STEPPER_WEBHOOK_URL": "webhook_url",
        }
        _ENV_INT_MAP = {
            "STEPPER_STEP_DELTA_THRESHOLD": "step_delta_threshold",
            "STEPPER_MQTT_PORT": "mqtt_port",
            "STEPPER_MQTT_KEEPALIVE": "mqtt_keepalive",
        }
        _ENV_FLOAT_MAP = {
            "STEPPER_SAVE_INTERVAL": "save_interval",
            "STEPPER_RESTART_DELAY": "restart_delay",
            "STEPPER_MAX_REPORT_LATENCY": "max_report_latency",
            "STEPPER_WEBHOOK_TIMEOUT": "webhook_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        try:
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    config_kwargs[field_name] = int(val)
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    config_kwargs[field_name] = float(val)
        except ValueError as exc:
            raise StepperConfigError(f"Invalid numeric environment value: {exc}") from exc

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("STEPPER_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
