"""
Deskflow watchdog loop.

Per tick:
  1. every periodic_key_check_interval: detect stuck keys, release them
  2. classify connection health and act on it
     HEALTHY                 -> reset reconnect counter
     GUI up, recent failure  -> release keys, reconnect (bounded) or cool down
     GUI up, otherwise       -> wait for the client to stabilise
     GUI down                -> reset counter, start the GUI
  3. sleep out the rest of the tick

Runs until the clock raises WatchdogStopped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .clock import Clock, WatchdogStopped
from .connection.health import ConnectionHealthMonitor
from .connection.reconnector import Reconnector
from .connection.types import ConnectionState
from .keys.detector import StuckKeyDetector
from .keys.unsticker import KeyUnsticker
from .state import LoopState

log = logging.getLogger(__name__)

ERROR_BACKOFF_SECONDS = 1.0


@dataclass(frozen=True)
class WatchdogSettings:
    check_interval_seconds: float = 10
    periodic_key_check_interval_seconds: float = 10
    max_reconnect_attempts: int = 3
    cooldown_seconds: float = 60


class Watchdog:
    def __init__(
        self,
        detector: StuckKeyDetector,
        unsticker: KeyUnsticker,
        health: ConnectionHealthMonitor,
        reconnector: Reconnector,
        clock: Clock,
        settings: WatchdogSettings = WatchdogSettings(),
    ) -> None:
        self._detector = detector
        self._unsticker = unsticker
        self._health = health
        self._reconnector = reconnector
        self._clock = clock
        self._cfg = settings

    def check_keys(self, state: LoopState) -> None:
        now = self._clock.monotonic()
        if (state.last_key_check_time is not None
                and now - state.last_key_check_time < self._cfg.periodic_key_check_interval_seconds):
            return

        if self._detector.detect().found:
            self._unsticker.release_all_tracked_keys()
        state.last_key_check_time = now

    def check_connection(self, state: LoopState) -> ConnectionState:
        conn = self._health.classify()

        if conn.healthy:
            if state.consecutive_reconnect_attempts > 0:
                log.info("Connection healthy, resetting reconnect counter")
                state.consecutive_reconnect_attempts = 0
            return conn

        if not conn.gui_running:
            log.info("Deskflow GUI not running")
            state.consecutive_reconnect_attempts = 0
            self._reconnector.ensure_gui_started()
            return conn

        if not conn.recent_failure:
            log.info("Client process exists but connection not yet stable, waiting...")
            return conn

        log.info(f"Recent connection failure detected ({conn})")
        self._unsticker.release_all_tracked_keys()

        if state.consecutive_reconnect_attempts < self._cfg.max_reconnect_attempts:
            state.consecutive_reconnect_attempts += 1
            log.info(f"Reconnection attempt {state.consecutive_reconnect_attempts}/{self._cfg.max_reconnect_attempts}")
            self._reconnector.attempt_reconnect(state)
        else:
            log.info("Max reconnection attempts reached. Waiting before reset...")
            self._clock.sleep(self._cfg.cooldown_seconds)
            state.consecutive_reconnect_attempts = 0
        return conn

    def tick(self, state: LoopState) -> None:
        started = self._clock.monotonic()
        self.check_keys(state)
        self.check_connection(state)
        elapsed = self._clock.monotonic() - started
        self._clock.sleep(max(0.0, self._cfg.check_interval_seconds - elapsed))

    def run(self, state: Optional[LoopState] = None, max_ticks: Optional[int] = None) -> LoopState:
        state = state or LoopState()
        log.info("Deskflow automated reconnect watchdog starting...")
        ticks = 0
        try:
            try:
                self._reconnector.ensure_gui_started()
            except WatchdogStopped:
                raise
            except Exception:
                log.exception("Watchdog startup error")
                self._clock.sleep(ERROR_BACKOFF_SECONDS)
            while max_ticks is None or ticks < max_ticks:
                ticks += 1
                try:
                    self.tick(state)
                except WatchdogStopped:
                    raise
                except Exception:
                    log.exception("Watchdog loop error")
                    self._clock.sleep(ERROR_BACKOFF_SECONDS)
        except WatchdogStopped:
            log.info("Deskflow watchdog stopping")
        return state
