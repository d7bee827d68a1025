from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import Optional


class WatchdogStopped(Exception):
    """Raised out of a sleep once shutdown has been requested."""


class Clock(ABC):
    @abstractmethod
    def monotonic(self) -> float:
        ...

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        ...


class StoppableClock(Clock):
    """Real clock whose sleeps end early, raising WatchdogStopped, after stop()."""

    def __init__(self, stop_evt: Optional[threading.Event] = None) -> None:
        self._stop_evt = stop_evt or threading.Event()

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if self._stop_evt.wait(max(0.0, seconds)):
            raise WatchdogStopped()

    def stop(self) -> None:
        self._stop_evt.set()

    @property
    def stopped(self) -> bool:
        return self._stop_evt.is_set()
