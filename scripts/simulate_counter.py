#!/usr/bin/env python3
"""Publish fake step counter readings to the counter topic.

Useful to drive a running service without hardware. Each message is the
JSON object the MQTT counter source expects::

    {"steps": 1234, "accuracy": 3, "timestamp": 1767225600000}

``--reboot-after N`` restarts the simulated count from zero after N
messages, like a device reboot would.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
import time
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import paho.mqtt.client as mqtt  # noqa: E402

from pystepper._mqtt import MqttBroker, build_client  # noqa: E402
from pystepper.config import StepperConfig  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish simulated step counter readings.")
    parser.add_argument("--host", help="Broker host (defaults to STEPPER_MQTT_HOST)")
    parser.add_argument("--topic", help="Counter topic (defaults to STEPPER_MQTT_COUNTER_TOPIC)")
    parser.add_argument("--start", type=int, default=0, help="Initial counter value")
    parser.add_argument("--interval", type=float, default=2.0, help="Seconds between readings")
    parser.add_argument("--max-increment", type=int, default=25, help="Largest step increment per reading")
    parser.add_argument("--count", type=int, default=0, help="Stop after N readings (0 = forever)")
    parser.add_argument("--reboot-after", type=int, default=0, help="Reset the counter after N readings")
    parser.add_argument("--glitch", action="store_true", help="Occasionally publish an out-of-range value")
    return parser.parse_args()


def _payload(steps: float) -> str:
    body: dict[str, Any] = {"steps": steps, "accuracy": 3, "timestamp": int(time.time() * 1000)}
    return json.dumps(body, separators=(",", ":"))


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    log = logging.getLogger("simulate_counter")

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["mqtt_host"] = args.host
    config = StepperConfig.from_env(**overrides)
    if not config.mqtt_host:
        print("No broker host: pass --host or set STEPPER_MQTT_HOST", file=sys.stderr)
        return 2
    topic = args.topic or config.mqtt_counter_topic

    client = build_client(MqttBroker.from_config(config, role="simulator"), log)
    client.connect(config.mqtt_host, config.mqtt_port, keepalive=config.mqtt_keepalive)
    client.loop_start()

    steps = args.start
    sent = 0
    try:
        while args.count <= 0 or sent < args.count:
            if args.reboot_after and sent and sent % args.reboot_after == 0:
                log.info("Simulated reboot, counter reset")
                steps = 0
            steps += random.randint(0, args.max_increment)
            value: float = steps
            if args.glitch and random.random() < 0.05:
                value = -1.0
            info = client.publish(topic, _payload(value), qos=1)
            info.wait_for_publish(timeout=5)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                log.warning("Publish failed rc=%s", info.rc)
            else:
                log.info("Published steps=%s", value)
            sent += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass
    finally:
        client.disconnect()
        client.loop_stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
