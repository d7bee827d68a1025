"""
Window automation for the Deskflow GUI via xdotool.

This is best effort: it depends on Deskflow's window title and widget
names, which can change between releases.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from deskflow_watchdog.core import shell


class WindowManager(ABC):
    @abstractmethod
    def find_window(self, title_pattern: str) -> Optional[str]:
        ...

    @abstractmethod
    def activate(self, window_id: str) -> bool:
        ...

    @abstractmethod
    def find_control(self, label: str) -> Optional[str]:
        ...

    @abstractmethod
    def trigger(self, control_id: str) -> bool:
        ...

    @abstractmethod
    def send_key(self, key: str) -> bool:
        """Send a key to whatever window has focus."""
        ...


class XdotoolWindowManager(WindowManager):
    def _search(self, pattern: str) -> Optional[str]:
        output = shell.run_tool(["xdotool", "search", "--name", pattern])
        if not output:
            return None
        ids = output.split()
        return ids[0] if ids else None

    def find_window(self, title_pattern: str) -> Optional[str]:
        return self._search(title_pattern)

    def activate(self, window_id: str) -> bool:
        return shell.run_action(["xdotool", "windowactivate", window_id])

    def find_control(self, label: str) -> Optional[str]:
        return self._search(label)

    def trigger(self, control_id: str) -> bool:
        return self.activate(control_id)

    def send_key(self, key: str) -> bool:
        return shell.run_action(["xdotool", "key", key])
