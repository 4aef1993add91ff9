#!/usr/bin/env python3
"""Run the step tracking service until the device shuts down.

Configuration comes from ``STEPPER_*`` environment variables; the flags
below override the most common ones.

Signals:
- SIGTERM: device shutdown (flush and exit)
- SIGHUP: task removed (quick restart)
- Ctrl+C: stop without the shutdown flush
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pystepper import StepperConfig, StepperService  # noqa: E402
from pystepper.exceptions import StepperError  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the pystepper service.")
    parser.add_argument("--database", help="SQLite file (overrides STEPPER_DATABASE_PATH)")
    parser.add_argument("--time-zone", help="IANA time zone (overrides STEPPER_TIME_ZONE)")
    parser.add_argument("--display", choices=["log", "mqtt", "webhook"], help="Display backend")
    parser.add_argument("--mqtt-host", help="Broker host for the counter source")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args()


async def _run(config: StepperConfig) -> None:
    loop = asyncio.get_running_loop()
    async with StepperService(config) as service:
        try:
            loop.add_signal_handler(signal.SIGHUP, service.task_removed)
        except (NotImplementedError, RuntimeError):
            logging.getLogger(__name__).debug("SIGHUP not available")
        service.start()
        await service.wait_closed()


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.database:
        overrides["database_path"] = args.database
    if args.time_zone:
        overrides["time_zone"] = args.time_zone
    if args.display:
        overrides["display_backend"] = args.display
    if args.mqtt_host:
        overrides["mqtt_host"] = args.mqtt_host

    try:
        config = StepperConfig.from_env(**overrides)
    except StepperError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
