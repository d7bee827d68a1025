from __future__ import annotations

import logging
from dataclasses import dataclass

from deskflow_watchdog.core.clock import Clock
from deskflow_watchdog.core.keys.unsticker import KeyUnsticker
from deskflow_watchdog.core.state import LoopState, ReconnectAttempt
from .health import ConnectionHealthMonitor
from .process_finder import GuiLauncher
from .window import WindowManager

log = logging.getLogger(__name__)

ACTIVATE_SETTLE_SECONDS = 1.0
SHORTCUT_SETTLE_SECONDS = 0.5


@dataclass(frozen=True)
class ReconnectSettings:
    window_title: str = "^Deskflow$"
    restart_control_name: str = "Restart"
    restart_shortcut: str = "F5"
    gui_settle_seconds: float = 10
    poll_interval_seconds: float = 10
    poll_count: int = 8


class Reconnector:
    """Restarts the Deskflow core through its GUI and waits for a stable client."""

    def __init__(
        self,
        health: ConnectionHealthMonitor,
        launcher: GuiLauncher,
        windows: WindowManager,
        unsticker: KeyUnsticker,
        clock: Clock,
        settings: ReconnectSettings = ReconnectSettings(),
    ) -> None:
        self._health = health
        self._launcher = launcher
        self._windows = windows
        self._unsticker = unsticker
        self._clock = clock
        self._settings = settings

    def ensure_gui_started(self) -> bool:
        if self._health.is_gui_running():
            return True

        log.info("Deskflow GUI not running, starting it...")
        if not self._launcher.spawn():
            log.info("Failed to start Deskflow GUI")
            return False
        self._clock.sleep(self._settings.gui_settle_seconds)

        if self._health.is_gui_running():
            log.info("Deskflow GUI started successfully")
            return True
        log.info("Failed to start Deskflow GUI")
        return False

    def send_restart_command(self) -> bool:
        log.info("Attempting to click reconnect button via GUI automation...")
        s = self._settings

        window_id = self._windows.find_window(s.window_title)
        if window_id is None:
            log.info("Could not find Deskflow window")
            return False

        self._windows.activate(window_id)
        self._clock.sleep(ACTIVATE_SETTLE_SECONDS)

        control_id = self._windows.find_control(s.restart_control_name)
        if control_id is not None and self._windows.trigger(control_id):
            log.info(f"Found and clicked {s.restart_control_name} button")
            return True

        log.info("Trying keyboard shortcut to restart core...")
        self._windows.activate(window_id)
        self._clock.sleep(SHORTCUT_SETTLE_SECONDS)
        if not self._windows.send_key(s.restart_shortcut):
            log.info(f"Could not send {s.restart_shortcut} to Deskflow window")
            return False
        log.info(f"Sent {s.restart_shortcut} restart command to Deskflow window")
        return True

    def wait_for_stable_connection(self) -> bool:
        s = self._settings
        ceiling = int(s.poll_interval_seconds * s.poll_count)
        for poll in range(1, s.poll_count + 1):
            self._clock.sleep(s.poll_interval_seconds)
            if self._health.classify().healthy:
                return True
            log.info(f"Waiting for reconnection to stabilize... ({int(poll * s.poll_interval_seconds)}s/{ceiling}s)")
        return False

    def attempt_reconnect(self, state: LoopState) -> bool:
        attempt = ReconnectAttempt(
            attempt_number=state.consecutive_reconnect_attempts,
            started_at=self._clock.monotonic(),
        )

        if not self.ensure_gui_started():
            log.info("Cannot reconnect - GUI failed to start")
            return False

        if not self.send_restart_command():
            log.info("Failed to send reconnect command")
            return False
        log.info("Reconnect command sent successfully")

        if self.wait_for_stable_connection():
            elapsed = self._clock.monotonic() - attempt.started_at
            log.info(f"Reconnection successful - connection stable! (attempt {attempt.attempt_number}, {elapsed:.0f}s)")
            self._unsticker.release_all_tracked_keys()
            state.consecutive_reconnect_attempts = 0
            return True

        log.info("Reconnect command sent but connection not established")
        return False
