from __future__ import annotations

import time
from typing import Callable, List

from .process_finder import ProcessFinder, ProcessInfo
from .types import ConnectionState, classify_connection


class ConnectionHealthMonitor:
    """
    Judges Deskflow connection health from the process table alone.

    Deskflow gives no external connection signal, so a client process that
    has survived longer than the stable threshold is taken as connected.
    """

    def __init__(
        self,
        finder: ProcessFinder,
        gui_pattern: str,
        client_pattern: str,
        stable_seconds: int = 30,
        flapping_seconds: int = 15,
        now: Callable[[], float] = time.time,
    ) -> None:
        self._finder = finder
        self._gui_pattern = gui_pattern
        self._client_pattern = client_pattern
        self._stable_seconds = stable_seconds
        self._flapping_seconds = flapping_seconds
        self._now = now

    def is_gui_running(self) -> bool:
        return bool(self._finder.find(self._gui_pattern))

    def is_client_running(self) -> bool:
        return bool(self._finder.find(self._client_pattern))

    def _runtime_of(self, clients: List[ProcessInfo]) -> int:
        # newest instance wins; a fresh respawn means the link just dropped
        dated = [p for p in clients if p.create_time is not None]
        if not dated:
            return 0
        newest = max(dated, key=lambda p: p.create_time)
        return max(0, int(self._now() - newest.create_time))

    def client_runtime_seconds(self) -> int:
        return self._runtime_of(self._finder.find(self._client_pattern))

    def classify(self) -> ConnectionState:
        clients = self._finder.find(self._client_pattern)
        return classify_connection(
            self.is_gui_running(),
            bool(clients),
            self._runtime_of(clients),
            stable_seconds=self._stable_seconds,
            flapping_seconds=self._flapping_seconds,
        )
