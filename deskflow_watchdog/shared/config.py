from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, Field, field_validator

from deskflow_watchdog.core.keys.types import TrackedModifierKey


class TrackedKey(BaseModel):
    code: int = Field(ge=0, le=255)
    name: str


class AppConfig(BaseModel):
    # X keycodes; F1 is Deskflow's default screen-switch key
    tracked_keys: List[TrackedKey] = Field(default_factory=lambda: [
        TrackedKey(code=50, name="Shift_L"),
        TrackedKey(code=62, name="Shift_R"),
        TrackedKey(code=37, name="Control_L"),
        TrackedKey(code=105, name="Control_R"),
        TrackedKey(code=64, name="Alt_L"),
        TrackedKey(code=108, name="Alt_R"),
        TrackedKey(code=133, name="Super_L"),
        TrackedKey(code=134, name="Super_R"),
        TrackedKey(code=67, name="F1"),
    ])
    release_aliases: List[str] = Field(default_factory=lambda: ["shift", "ctrl", "alt", "super", "hyper", "meta"])
    fix_lock_indicators: bool = True

    master_device_name: str = "Virtual core keyboard"
    physical_deny_list: List[str] = Field(default_factory=lambda: [
        "XTEST", "Power Button", "Video Bus", "Sleep Button", "Hotkey", "HID events",
    ])

    gui_process_pattern: str = r"^deskflow$|deskflow-gui"
    client_process_pattern: str = r"deskflow-core client"
    gui_command: List[str] = Field(default_factory=lambda: ["deskflow"], min_length=1)
    gui_output_log: str = "/tmp/deskflow-auto.log"
    default_display: str = ":0"
    window_title: str = "^Deskflow$"
    restart_control_name: str = "Restart"
    restart_shortcut: str = "F5"

    check_interval_seconds: float = Field(default=10, gt=0)
    periodic_key_check_interval_seconds: float = Field(default=10, ge=0)
    key_confirm_delay_seconds: float = Field(default=0.5, ge=0)
    max_reconnect_attempts: int = Field(default=3, ge=1)
    connection_stable_seconds: int = Field(default=30, ge=0)
    flapping_threshold_seconds: int = Field(default=15, ge=0)
    gui_settle_seconds: float = Field(default=10, ge=0)
    reconnect_poll_interval_seconds: float = Field(default=10, gt=0)
    reconnect_poll_count: int = Field(default=8, ge=1)
    cooldown_seconds: float = Field(default=60, ge=0)
    startup_delay_seconds: float = Field(default=10, ge=0)

    def to_tracked_keys(self) -> tuple[TrackedModifierKey, ...]:
        return tuple(TrackedModifierKey(code=k.code, name=k.name) for k in self.tracked_keys)

    @field_validator("gui_process_pattern", "client_process_pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid process pattern {v!r}: {e}") from e
        return v
