from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

from .device_reader import DeviceStateReader
from .types import DetectionResult, KeyStateSnapshot, TrackedModifierKey

log = logging.getLogger(__name__)


def candidate_stuck_keys(
    tracked: Sequence[TrackedModifierKey],
    master: Optional[KeyStateSnapshot],
    physical: Optional[KeyStateSnapshot],
) -> Tuple[TrackedModifierKey, ...]:
    """Keys down on the master keyboard but up on the physical one."""
    if master is None or physical is None:
        return ()
    return tuple(k for k in tracked if k.code in master.pressed and k.code not in physical.pressed)


class StuckKeyDetector:
    """
    Finds modifiers that were injected (XTEST) without a matching key-up.

    A real keypress is briefly down on master before it shows up on the
    physical device too, so candidates are re-read after a short delay and
    only keys that are still candidates are reported.
    """

    def __init__(
        self,
        reader: DeviceStateReader,
        tracked: Sequence[TrackedModifierKey],
        sleep: Callable[[float], None],
        confirm_delay_seconds: float = 0.5,
        check_lock_indicators: bool = True,
    ) -> None:
        self._reader = reader
        self._tracked = tuple(tracked)
        self._sleep = sleep
        self._confirm_delay = confirm_delay_seconds
        self._check_locks = check_lock_indicators

    def _candidates(self) -> Tuple[TrackedModifierKey, ...]:
        return candidate_stuck_keys(
            self._tracked,
            self._reader.read_master_state(),
            self._reader.read_physical_state(),
        )

    def detect_stuck_keys(self) -> Tuple[TrackedModifierKey, ...]:
        first = self._candidates()
        if not first:
            return ()

        self._sleep(self._confirm_delay)
        second = set(self._candidates())
        return tuple(k for k in first if k in second)

    def detect_stuck_locks(self) -> Tuple[str, ...]:
        if not self._check_locks:
            return ()
        locks = self._reader.read_lock_indicators()
        if locks is None:
            return ()
        return locks.stuck_names()

    def detect(self) -> DetectionResult:
        stuck_keys = self.detect_stuck_keys()
        if stuck_keys:
            log.info(f"Detected stuck keys (Deskflow/XTEST, not physical): {' '.join(k.name for k in stuck_keys)}")

        stuck_locks = self.detect_stuck_locks()
        if stuck_locks:
            log.info(f"Detected stuck lock keys: {' '.join(stuck_locks)}")

        return DetectionResult(stuck_keys=stuck_keys, stuck_locks=stuck_locks)
