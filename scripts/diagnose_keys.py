"""
Diagnostic script for stuck-key detection.
Shows what the watchdog sees on the master and physical keyboards.
"""

import sys
import os
import logging

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from deskflow_watchdog.core import shell
from deskflow_watchdog.core.keys.device_reader import XInputDeviceReader
from deskflow_watchdog.core.keys.detector import candidate_stuck_keys
from deskflow_watchdog.shared.config import AppConfig

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)


def section(title):
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


def main():
    cfg = AppConfig()
    tracked = cfg.to_tracked_keys()
    reader = XInputDeviceReader(cfg.master_device_name, cfg.physical_deny_list)

    for tool in ("xinput", "xset", "xdotool", "setxkbmap"):
        print(f"{'✓' if shell.tool_available(tool) else '✗'} {tool}")

    section("Keyboard Devices")
    for dev in reader.list_devices():
        if "keyboard" in dev.role:
            print(f"  id={dev.id:<4} {dev.name}  [{dev.role}]")

    section("Master Keyboard State")
    print(f"Master ID: {reader.master_id()}")
    master = reader.read_master_state()
    if master is None:
        print("✗ Could not read master keyboard")
    else:
        for k in tracked:
            print(f"  key[{k.code}] {k.name:<10} {'down' if k.code in master.pressed else 'up'}")

    section("Physical Keyboard State")
    physical_dev = reader.physical_device()
    physical = reader.read_physical_state()
    if physical_dev is None or physical is None:
        print("✗ Could not find physical keyboard")
    else:
        print(f"Physical ID: {physical_dev.id} ({physical_dev.name})")
        for k in tracked:
            print(f"  key[{k.code}] {k.name:<10} {'down' if k.code in physical.pressed else 'up'}")

    section("All Keys Down on Master")
    if master is not None:
        print("  " + (" ".join(str(c) for c in sorted(master.pressed)) or "(none)"))

    section("Lock Status")
    locks = reader.read_lock_indicators()
    if locks is None:
        print("✗ xset q unavailable")
    else:
        print(f"  Caps Lock:   {'on' if locks.caps_on else 'off'}")
        print(f"  Scroll Lock: {'on' if locks.scroll_on else 'off'}")

    section("Verdict")
    stuck = candidate_stuck_keys(tracked, master, physical)
    if stuck:
        print("Down on master but not physical: " + " ".join(k.name for k in stuck))
    else:
        print("No stuck modifier candidates")

    print("\nLegend:")
    for k in tracked:
        print(f"  {k.name}={k.code}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
