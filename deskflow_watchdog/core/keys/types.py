from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class DeviceSource(str, Enum):
    MASTER = "MASTER"
    PHYSICAL = "PHYSICAL"


@dataclass(frozen=True)
class TrackedModifierKey:
    code: int  # X keycode
    name: str  # keysym name understood by xdotool


@dataclass(frozen=True)
class KeyStateSnapshot:
    """Keys a device reports as down at one instant."""
    source: DeviceSource
    pressed: frozenset[int]
    timestamp: float


@dataclass(frozen=True)
class LockIndicatorState:
    caps_on: bool
    scroll_on: bool

    def stuck_names(self) -> Tuple[str, ...]:
        names = []
        if self.caps_on:
            names.append("Caps Lock")
        if self.scroll_on:
            names.append("Scroll Lock")
        return tuple(names)


@dataclass(frozen=True)
class DetectionResult:
    stuck_keys: Tuple[TrackedModifierKey, ...] = ()
    stuck_locks: Tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return bool(self.stuck_keys or self.stuck_locks)
