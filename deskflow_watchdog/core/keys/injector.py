from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from deskflow_watchdog.core import shell

log = logging.getLogger(__name__)


class InputInjector(ABC):
    """Synthetic input and keyboard configuration. Each call reports success."""

    @abstractmethod
    def key_up(self, names: Sequence[str]) -> bool:
        ...

    @abstractmethod
    def key_tap(self, name: str) -> bool:
        ...

    @abstractmethod
    def set_autorepeat(self, enabled: bool) -> bool:
        ...

    @abstractmethod
    def reset_layout_options(self) -> bool:
        ...


class XdotoolInjector(InputInjector):
    def key_up(self, names: Sequence[str]) -> bool:
        if not names:
            return True
        return shell.run_action(["xdotool", "keyup", *names])

    def key_tap(self, name: str) -> bool:
        return shell.run_action(["xdotool", "key", name])

    def set_autorepeat(self, enabled: bool) -> bool:
        return shell.run_action(["xset", "r", "on" if enabled else "off"])

    def reset_layout_options(self) -> bool:
        # Empty -option clears every XKB option back to the layout default
        return shell.run_action(["setxkbmap", "-option"])
