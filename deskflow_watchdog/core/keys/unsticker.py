from __future__ import annotations

import logging
from typing import Optional, Sequence

from .device_reader import DeviceStateReader
from .injector import InputInjector
from .types import TrackedModifierKey

log = logging.getLogger(__name__)


class KeyUnsticker:
    """Releases every tracked key and puts keyboard state back to a known baseline."""

    def __init__(
        self,
        injector: InputInjector,
        tracked: Sequence[TrackedModifierKey],
        aliases: Sequence[str] = (),
        reader: Optional[DeviceStateReader] = None,
        fix_lock_indicators: bool = True,
    ) -> None:
        self._injector = injector
        self._key_names = [k.name for k in tracked] + ["Caps_Lock"]
        self._aliases = list(aliases)
        self._reader = reader
        self._fix_locks = fix_lock_indicators

    def _clear_lock_indicators(self) -> bool:
        if not self._fix_locks or self._reader is None:
            return True
        locks = self._reader.read_lock_indicators()
        if locks is None:
            return True
        ok = True
        # One tap each: a lock that is already off stays off
        if locks.caps_on:
            ok = self._injector.key_tap("Caps_Lock") and ok
        if locks.scroll_on:
            ok = self._injector.key_tap("Scroll_Lock") and ok
        return ok

    def release_all_tracked_keys(self) -> bool:
        log.info("Releasing stuck modifier keys...")
        ok = True

        if not self._injector.key_up(self._key_names):
            log.debug("key-up for tracked keys failed")
            ok = False
        if self._aliases and not self._injector.key_up(self._aliases):
            log.debug("key-up for modifier aliases failed")
            ok = False

        if not self._injector.set_autorepeat(True):
            log.debug("Could not re-enable keyboard auto-repeat")
            ok = False

        if self._injector.reset_layout_options():
            if not self._clear_lock_indicators():
                log.debug("Could not toggle lock keys off")
                ok = False
        else:
            log.debug("Could not reset keyboard layout options")
            ok = False

        log.info("Modifier keys released")
        return ok
