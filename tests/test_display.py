from __future__ import annotations

import asyncio
import logging
from typing import ClassVar

import pytest

from pystepper.config import StepperConfig
from pystepper.display.log import LoggingDisplay
from pystepper.display.message import build_display_state, format_count
from pystepper.display.mqtt import MqttDisplay
from pystepper.display.refresh import DisplayRefresher
from pystepper.display.selection import select_display
from pystepper.display.webhook import WebhookDisplay
from pystepper.exceptions import StepperConfigError
from pystepper.models.display import DisplayKind, DisplayState
from pystepper.models.preferences import Preferences


class _Surface:
    persistent: ClassVar[bool] = True

    def __init__(self) -> None:
        self.states: list[DisplayState] = []

    def publish(self, state: DisplayState) -> None:
        self.states.append(state)


class _TransientSurface(_Surface):
    persistent: ClassVar[bool] = False


class _FailingSurface:
    persistent: ClassVar[bool] = True

    def publish(self, state: DisplayState) -> None:
        raise RuntimeError("surface gone")


class _Prefs:
    def __init__(self, prefs: Preferences | None = None, *, fail: bool = False) -> None:
        self._prefs = prefs or Preferences()
        self._fail = fail

    def load_preferences(self) -> Preferences:
        if self._fail:
            raise OSError("unreadable")
        return self._prefs


def _prefs(**values: object) -> Preferences:
    return Preferences.model_validate(values)


def test_format_count_groups_thousands() -> None:
    assert format_count(0) == "0"
    assert format_count(999) == "999"
    assert format_count(12345) == "12,345"
    assert format_count(-1200) == "-1,200"


def test_no_data_before_first_step() -> None:
    state = build_display_state(steps=0, steps_today=0, preferences=Preferences())

    assert state.kind == DisplayKind.NO_DATA
    assert state.title == "Pedometer is counting"
    assert state.text == "Your progress will be shown here soon"
    assert not state.goal_reached


def test_steps_to_go() -> None:
    state = build_display_state(steps=4000, steps_today=2500, preferences=Preferences())

    assert state.kind == DisplayKind.STEPS_TO_GO
    assert state.text == "7,500 steps to go"
    assert state.steps_today == 2500
    assert state.goal == 10000


def test_goal_reached_at_exact_goal() -> None:
    state = build_display_state(steps=20000, steps_today=10000, preferences=Preferences())

    assert state.kind == DisplayKind.GOAL_REACHED
    assert state.goal_reached
    assert state.text == "10,000 steps today"


def test_zero_goal_counts_as_one() -> None:
    prefs = _prefs(goal=0)
    assert build_display_state(steps=10, steps_today=0, preferences=prefs).kind == DisplayKind.STEPS_TO_GO
    assert build_display_state(steps=10, steps_today=1, preferences=prefs).kind == DisplayKind.GOAL_REACHED


def test_custom_templates() -> None:
    prefs = _prefs(
        steps_to_go_format_text="{1} done, {0} left of {2}",
        is_counting_text="Counting",
    )
    state = build_display_state(steps=100, steps_today=1500, preferences=prefs)

    assert state.title == "Counting"
    assert state.text == "1,500 done, 8,500 left of 10,000"


def test_broken_template_uses_default(caplog: pytest.LogCaptureFixture) -> None:
    prefs = _prefs(steps_to_go_format_text="{5} left")
    with caplog.at_level(logging.WARNING):
        state = build_display_state(steps=100, steps_today=0, preferences=prefs)

    assert state.text == "10,000 steps to go"
    assert "Invalid message template" in caplog.text


def test_attribute_access_template_uses_default() -> None:
    prefs = _prefs(steps_to_go_format_text="{0.x} to go", goal_reached_format_text="{1[0]:q}")

    assert build_display_state(steps=100, steps_today=0, preferences=prefs).text == "10,000 steps to go"
    assert build_display_state(steps=100, steps_today=10000, preferences=prefs).text == "10,000 steps today"


@pytest.mark.asyncio
async def test_select_webhook_without_url_raises() -> None:
    config = StepperConfig(display_backend="webhook", webhook_url="http://h/x")
    object.__setattr__(config, "webhook_url", None)

    with pytest.raises(StepperConfigError, match="webhook_url"):
        select_display(config, loop=asyncio.get_running_loop())


def test_refresher_publishes_to_persistent_surface() -> None:
    surface = _Surface()
    refresher = DisplayRefresher(surface, _Prefs(_prefs(notification=False)))

    state = refresher.refresh(steps=10, steps_today=5)

    assert surface.states == [state]
    assert refresher.last_state == state


def test_refresher_skips_transient_surface_when_notifications_off() -> None:
    surface = _TransientSurface()
    refresher = DisplayRefresher(surface, _Prefs(_prefs(notification="false")))

    state = refresher.refresh(steps=10, steps_today=5)

    assert state.kind == DisplayKind.STEPS_TO_GO
    assert surface.states == []
    assert refresher.last_state is None


def test_refresher_publishes_transient_surface_when_notifications_on() -> None:
    surface = _TransientSurface()
    DisplayRefresher(surface, _Prefs()).refresh(steps=10, steps_today=5)
    assert len(surface.states) == 1


def test_refresher_uses_defaults_when_preferences_fail() -> None:
    surface = _Surface()
    state = DisplayRefresher(surface, _Prefs(fail=True)).refresh(steps=10, steps_today=5)
    assert state.goal == 10000
    assert surface.states == [state]


def test_refresher_swallows_publish_errors(caplog: pytest.LogCaptureFixture) -> None:
    refresher = DisplayRefresher(_FailingSurface())
    with caplog.at_level(logging.WARNING):
        state = refresher.refresh(steps=0, steps_today=0)

    assert state.kind == DisplayKind.NO_DATA
    assert refresher.last_state is None
    assert "Display update failed" in caplog.text


def test_logging_display_skips_repeats(caplog: pytest.LogCaptureFixture) -> None:
    display = LoggingDisplay(logging.getLogger("test.display"))
    state = build_display_state(steps=10, steps_today=5, preferences=Preferences())

    with caplog.at_level(logging.INFO, logger="test.display"):
        display.publish(state)
        display.publish(state)

    assert caplog.text.count("9,995 steps to go") == 1


@pytest.mark.asyncio
async def test_select_display_by_backend() -> None:
    loop = asyncio.get_running_loop()

    assert isinstance(select_display(StepperConfig(), loop=loop), LoggingDisplay)
    assert isinstance(
        select_display(StepperConfig(display_backend="mqtt", mqtt_host="broker.local"), loop=loop),
        MqttDisplay,
    )
    webhook = select_display(StepperConfig(display_backend="webhook", webhook_url="http://h/x"), loop=loop)
    assert isinstance(webhook, WebhookDisplay)
    assert webhook.persistent is False
