"""
Thin wrapper around the X11 command-line tools the watchdog drives
(xinput, xset, xdotool, setxkbmap).

Every failure mode (tool not installed, timeout, non-zero exit, OS error)
collapses to ``None`` so callers can treat it as "cannot determine, skip".
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional, Sequence

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0


def tool_available(name: str) -> bool:
    return shutil.which(name) is not None


def run_tool(args: Sequence[str], timeout: float = DEFAULT_TIMEOUT) -> Optional[str]:
    """
    Run an external tool and return its stdout.

    Returns:
        stdout text on exit code 0, None otherwise.
    """
    if not args or not tool_available(args[0]):
        log.debug(f"{args[0] if args else '<empty>'} not available")
        return None

    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        log.debug(f"{args[0]} timed out (>{timeout}s)")
        return None
    except OSError as e:
        log.debug(f"{args[0]} OS error: {e}")
        return None

    if result.returncode != 0:
        log.debug(f"{args[0]} returned non-zero exit code: {result.returncode}")
        if result.stderr:
            log.debug(f"{args[0]} stderr: {result.stderr[:200]}")
        return None
    return result.stdout


def run_action(args: Sequence[str], timeout: float = DEFAULT_TIMEOUT) -> bool:
    """Run a tool for its side effect. True on exit code 0."""
    return run_tool(args, timeout=timeout) is not None
