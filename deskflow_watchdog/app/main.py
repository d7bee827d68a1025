import logging
import os
import signal
import sys
from typing import Optional

from deskflow_watchdog.shared.config import AppConfig
from deskflow_watchdog.shared.paths import ensure_app_dirs
from deskflow_watchdog.shared.store import ConfigStore
from deskflow_watchdog.core.logging_ import setup_logging
from deskflow_watchdog.core.clock import Clock, StoppableClock, WatchdogStopped
from deskflow_watchdog.core.connection.health import ConnectionHealthMonitor
from deskflow_watchdog.core.connection.process_finder import PsutilProcessFinder, SubprocessGuiLauncher
from deskflow_watchdog.core.connection.reconnector import Reconnector, ReconnectSettings
from deskflow_watchdog.core.connection.window import XdotoolWindowManager
from deskflow_watchdog.core.keys.detector import StuckKeyDetector
from deskflow_watchdog.core.keys.device_reader import XInputDeviceReader
from deskflow_watchdog.core.keys.injector import XdotoolInjector
from deskflow_watchdog.core.keys.unsticker import KeyUnsticker
from deskflow_watchdog.core.watchdog import Watchdog, WatchdogSettings

log = logging.getLogger(__name__)


def prepare_environment(cfg: AppConfig) -> None:
    # Service managers start us without the graphical session's variables
    os.environ.setdefault("DISPLAY", cfg.default_display)
    os.environ.setdefault("WAYLAND_DISPLAY", "wayland-0")
    os.environ.setdefault("XDG_RUNTIME_DIR", f"/run/user/{os.getuid()}")


def build_watchdog(cfg: AppConfig, clock: Clock) -> Watchdog:
    tracked = cfg.to_tracked_keys()

    reader = XInputDeviceReader(cfg.master_device_name, cfg.physical_deny_list)
    detector = StuckKeyDetector(
        reader,
        tracked,
        sleep=clock.sleep,
        confirm_delay_seconds=cfg.key_confirm_delay_seconds,
        check_lock_indicators=cfg.fix_lock_indicators,
    )
    unsticker = KeyUnsticker(
        XdotoolInjector(),
        tracked,
        aliases=cfg.release_aliases,
        reader=reader,
        fix_lock_indicators=cfg.fix_lock_indicators,
    )
    health = ConnectionHealthMonitor(
        PsutilProcessFinder(),
        gui_pattern=cfg.gui_process_pattern,
        client_pattern=cfg.client_process_pattern,
        stable_seconds=cfg.connection_stable_seconds,
        flapping_seconds=cfg.flapping_threshold_seconds,
    )
    reconnector = Reconnector(
        health,
        SubprocessGuiLauncher(cfg.gui_command, cfg.gui_output_log, cfg.default_display),
        XdotoolWindowManager(),
        unsticker,
        clock,
        ReconnectSettings(
            window_title=cfg.window_title,
            restart_control_name=cfg.restart_control_name,
            restart_shortcut=cfg.restart_shortcut,
            gui_settle_seconds=cfg.gui_settle_seconds,
            poll_interval_seconds=cfg.reconnect_poll_interval_seconds,
            poll_count=cfg.reconnect_poll_count,
        ),
    )
    return Watchdog(
        detector,
        unsticker,
        health,
        reconnector,
        clock,
        WatchdogSettings(
            check_interval_seconds=cfg.check_interval_seconds,
            periodic_key_check_interval_seconds=cfg.periodic_key_check_interval_seconds,
            max_reconnect_attempts=cfg.max_reconnect_attempts,
            cooldown_seconds=cfg.cooldown_seconds,
        ),
    )


def main(cfg: Optional[AppConfig] = None) -> None:
    ensure_app_dirs()
    setup_logging()

    if cfg is None:
        cfg = ConfigStore().load()
    prepare_environment(cfg)

    clock = StoppableClock()

    # SIGTERM from the service manager, SIGINT from a terminal
    def signal_handler(sig, frame):
        log.info(f"Received signal {sig}, shutting down...")
        clock.stop()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        # Give the graphical session time to come up
        clock.sleep(cfg.startup_delay_seconds)
    except WatchdogStopped:
        sys.exit(0)

    build_watchdog(cfg, clock).run()
    sys.exit(0)


if __name__ == "__main__":
    main()
