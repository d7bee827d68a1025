"""
Keyboard state reader for X11 using xinput and xset.

The master keyboard ("Virtual core keyboard") is fed by both hardware and
XTEST injection; a physical slave keyboard only sees hardware. Comparing
the two is how injected-and-never-released keys are spotted.

Device ids are looked up on every call because they change between
sessions and when the X server restarts.
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional

from deskflow_watchdog.core import shell
from .types import DeviceSource, KeyStateSnapshot, LockIndicatorState

log = logging.getLogger(__name__)

_LIST_LINE = re.compile(r"^[\W_]*(?P<name>.*?)\s+id=(?P<id>\d+)\s+\[(?P<role>[^\]]*)\]")
_SLAVE_KEYBOARD = re.compile(r"slave\s+keyboard")
_KEY_DOWN = re.compile(r"key\[(\d+)\]=down")
_CAPS = re.compile(r"Caps Lock:\s+(on|off)")
_SCROLL = re.compile(r"Scroll Lock:\s+(on|off)")


@dataclass(frozen=True)
class InputDevice:
    id: int
    name: str
    role: str

    @property
    def is_slave_keyboard(self) -> bool:
        return bool(_SLAVE_KEYBOARD.search(self.role))


def parse_device_list(output: str) -> List[InputDevice]:
    devices: List[InputDevice] = []
    for line in output.splitlines():
        m = _LIST_LINE.match(line.strip())
        if not m:
            continue
        devices.append(InputDevice(id=int(m.group("id")), name=m.group("name").strip(), role=m.group("role")))
    return devices


def pick_physical_keyboard(devices: Iterable[InputDevice], deny_list: Iterable[str]) -> Optional[InputDevice]:
    """First slave keyboard whose name matches none of the deny-list entries."""
    deny = [d for d in deny_list if d]
    for dev in devices:
        if not dev.is_slave_keyboard:
            continue
        if any(d in dev.name for d in deny):
            continue
        return dev
    return None


def parse_pressed_keys(output: str) -> frozenset[int]:
    return frozenset(int(code) for code in _KEY_DOWN.findall(output))


def parse_lock_indicators(output: str) -> Optional[LockIndicatorState]:
    caps = _CAPS.search(output)
    scroll = _SCROLL.search(output)
    if caps is None and scroll is None:
        return None
    return LockIndicatorState(
        caps_on=caps is not None and caps.group(1) == "on",
        scroll_on=scroll is not None and scroll.group(1) == "on",
    )


class DeviceStateReader(ABC):
    """Read-only view of keyboard state. None means the source is unavailable."""

    @abstractmethod
    def read_master_state(self) -> Optional[KeyStateSnapshot]:
        ...

    @abstractmethod
    def read_physical_state(self) -> Optional[KeyStateSnapshot]:
        ...

    @abstractmethod
    def read_lock_indicators(self) -> Optional[LockIndicatorState]:
        ...


class XInputDeviceReader(DeviceStateReader):
    def __init__(self, master_name: str, deny_list: Iterable[str]) -> None:
        self._master_name = master_name
        self._deny_list = list(deny_list)

    def list_devices(self) -> List[InputDevice]:
        output = shell.run_tool(["xinput", "list"])
        if output is None:
            return []
        return parse_device_list(output)

    def master_id(self) -> Optional[int]:
        output = shell.run_tool(["xinput", "list", "--id-only", self._master_name])
        if not output or not output.strip().isdigit():
            return None
        return int(output.strip())

    def physical_device(self) -> Optional[InputDevice]:
        return pick_physical_keyboard(self.list_devices(), self._deny_list)

    def _snapshot(self, device_id: Optional[int], source: DeviceSource) -> Optional[KeyStateSnapshot]:
        if device_id is None:
            log.debug(f"No {source.value.lower()} keyboard found")
            return None
        output = shell.run_tool(["xinput", "query-state", str(device_id)])
        if not output:
            return None
        return KeyStateSnapshot(source=source, pressed=parse_pressed_keys(output), timestamp=time.time())

    def read_master_state(self) -> Optional[KeyStateSnapshot]:
        return self._snapshot(self.master_id(), DeviceSource.MASTER)

    def read_physical_state(self) -> Optional[KeyStateSnapshot]:
        dev = self.physical_device()
        return self._snapshot(dev.id if dev else None, DeviceSource.PHYSICAL)

    def read_lock_indicators(self) -> Optional[LockIndicatorState]:
        output = shell.run_tool(["xset", "q"])
        if not output:
            return None
        return parse_lock_indicators(output)
