from __future__ import annotations

import logging

import pytest

from deskflow_watchdog.core.connection.health import ConnectionHealthMonitor
from deskflow_watchdog.core.connection.reconnector import Reconnector, ReconnectSettings
from deskflow_watchdog.core.keys.unsticker import KeyUnsticker
from deskflow_watchdog.core.state import LoopState
from deskflow_watchdog.shared.config import AppConfig
from fakes import (
    CLIENT_PATTERN,
    GUI_PATTERN,
    FakeClock,
    FakeInjector,
    FakeLauncher,
    FakeProcessFinder,
    FakeWindowManager,
)


class Rig:
    def __init__(self, window_id="0x01", control_id=None, launcher_appears=True) -> None:
        self.clock = FakeClock()
        self.finder = FakeProcessFinder()
        self.health = ConnectionHealthMonitor(self.finder, GUI_PATTERN, CLIENT_PATTERN, now=lambda: self.clock.now)
        self.launcher = FakeLauncher(self.finder, appears=launcher_appears)
        self.windows = FakeWindowManager(window_id=window_id, control_id=control_id)
        self.injector = FakeInjector()
        self.unsticker = KeyUnsticker(self.injector, AppConfig().to_tracked_keys())
        self.reconnector = Reconnector(
            self.health, self.launcher, self.windows, self.unsticker, self.clock, ReconnectSettings()
        )

    @property
    def releases(self) -> int:
        return sum(1 for c in self.injector.calls if c[0] == "set_autorepeat")


def test_ensure_gui_started_noop_when_running() -> None:
    rig = Rig()
    rig.finder.set(GUI_PATTERN, 0.0)

    assert rig.reconnector.ensure_gui_started()
    assert rig.launcher.spawns == 0
    assert rig.clock.sleeps == []


def test_ensure_gui_started_spawns_and_settles(caplog: pytest.LogCaptureFixture) -> None:
    rig = Rig()

    with caplog.at_level(logging.INFO):
        assert rig.reconnector.ensure_gui_started()

    assert rig.launcher.spawns == 1
    assert rig.clock.sleeps == [10]
    assert "Deskflow GUI started successfully" in caplog.text


def test_ensure_gui_started_reports_failure_without_retry() -> None:
    rig = Rig(launcher_appears=False)

    assert not rig.reconnector.ensure_gui_started()
    assert rig.launcher.spawns == 1


def test_reconnect_aborts_without_window() -> None:
    rig = Rig(window_id=None)
    rig.finder.set(GUI_PATTERN, 0.0)
    state = LoopState(consecutive_reconnect_attempts=1)

    assert not rig.reconnector.attempt_reconnect(state)
    assert rig.windows.keys == []
    assert state.consecutive_reconnect_attempts == 1


def test_reconnect_uses_restart_control_when_found() -> None:
    rig = Rig(control_id="0x99")
    rig.finder.set(GUI_PATTERN, 0.0)
    rig.finder.set(CLIENT_PATTERN, rig.clock.now - 100)

    assert rig.reconnector.attempt_reconnect(LoopState(consecutive_reconnect_attempts=1))
    assert rig.windows.triggered == ["0x99"]
    assert rig.windows.keys == []


def test_reconnect_falls_back_to_shortcut_and_succeeds() -> None:
    rig = Rig()
    rig.finder.set(GUI_PATTERN, 0.0)
    # Client respawned just now; it passes the 30s stable mark on the 3rd poll
    rig.finder.set(CLIENT_PATTERN, rig.clock.now)
    state = LoopState(consecutive_reconnect_attempts=2)

    assert rig.reconnector.attempt_reconnect(state)

    assert rig.windows.keys == ["F5"]
    assert state.consecutive_reconnect_attempts == 0
    assert rig.releases == 1
    assert rig.clock.sleeps == [1.0, 0.5, 10, 10, 10]


def test_reconnect_fails_after_poll_budget(caplog: pytest.LogCaptureFixture) -> None:
    rig = Rig()
    rig.finder.set(GUI_PATTERN, 0.0)
    state = LoopState(consecutive_reconnect_attempts=3)

    with caplog.at_level(logging.INFO):
        assert not rig.reconnector.attempt_reconnect(state)

    assert rig.clock.sleeps.count(10) == 8
    assert state.consecutive_reconnect_attempts == 3
    assert rig.releases == 0
    assert "(80s/80s)" in caplog.text
    assert "Reconnect command sent but connection not established" in caplog.text


def test_reconnect_aborts_when_gui_cannot_start() -> None:
    rig = Rig(launcher_appears=False)

    assert not rig.reconnector.attempt_reconnect(LoopState(consecutive_reconnect_attempts=1))
    assert rig.windows.activated == []
