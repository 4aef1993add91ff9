"""Pick the display surface once, at startup."""

from __future__ import annotations

import asyncio
import logging

from pystepper._mqtt import MqttBroker
from pystepper.config import StepperConfig
from pystepper.display.base import DisplaySurface
from pystepper.display.log import LoggingDisplay
from pystepper.display.mqtt import MqttDisplay
from pystepper.display.webhook import WebhookDisplay
from pystepper.exceptions import StepperConfigError


def select_display(
    config: StepperConfig,
    *,
    loop: asyncio.AbstractEventLoop,
    logger: logging.Logger | None = None,
) -> DisplaySurface:
    """Return the surface for ``config.display_backend``.

    Everything downstream talks to the returned object through
    :class:`DisplaySurface` only.
    """
    backend = config.display_backend
    if backend == "mqtt":
        return MqttDisplay(
            MqttBroker.from_config(config, role="display"),
            config.mqtt_display_topic,
            logger=logger,
        )
    if backend == "webhook":
        if not config.webhook_url:
            raise StepperConfigError("display_backend 'webhook' requires webhook_url")
        return WebhookDisplay(config.webhook_url, loop=loop, timeout=config.webhook_timeout, logger=logger)
    return LoggingDisplay(logger)
