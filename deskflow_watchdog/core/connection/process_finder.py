from __future__ import annotations

import logging
import os
import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import psutil

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    cmdline: str
    create_time: Optional[float]  # epoch seconds, None if unreadable


class ProcessFinder(ABC):
    """Process table lookups by command-line regex (pgrep -f semantics)."""

    @abstractmethod
    def find(self, pattern: str) -> List[ProcessInfo]:
        ...


class PsutilProcessFinder(ProcessFinder):
    def find(self, pattern: str) -> List[ProcessInfo]:
        rx = re.compile(pattern)
        own_pid = os.getpid()
        found: List[ProcessInfo] = []
        for p in psutil.process_iter(attrs=["pid", "name", "cmdline", "create_time", "status"]):
            try:
                info = p.info
                if info.get("pid") == own_pid:
                    continue
                # An exited child nobody has waited on yet is not running
                if info.get("status") == psutil.STATUS_ZOMBIE:
                    continue
                args = info.get("cmdline") or []
                cmdline = " ".join(args) if args else (info.get("name") or "")
                if not cmdline or not rx.search(cmdline):
                    continue
                found.append(ProcessInfo(pid=int(info["pid"]), cmdline=cmdline, create_time=info.get("create_time")))
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return found


class GuiLauncher(ABC):
    @abstractmethod
    def spawn(self) -> bool:
        """Start the GUI detached. True if the process was created."""
        ...


class SubprocessGuiLauncher(GuiLauncher):
    def __init__(self, command: Sequence[str], output_log: str, default_display: str = ":0") -> None:
        self._command = list(command)
        self._output_log = output_log
        self._default_display = default_display
        self._proc: Optional[subprocess.Popen] = None

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env.setdefault("DISPLAY", self._default_display)
        return env

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc is not None else None

    def reap(self) -> Optional[int]:
        """Collect the previously spawned GUI if it has exited. Returns its exit code."""
        if self._proc is None:
            return None
        code = self._proc.poll()
        if code is not None:
            log.info(f"Previously launched Deskflow GUI exited with code {code}")
            self._proc = None
        return code

    def spawn(self) -> bool:
        self.reap()
        try:
            with open(self._output_log, "ab") as out:
                self._proc = subprocess.Popen(
                    self._command,
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=subprocess.STDOUT,
                    env=self._env(),
                    start_new_session=True,
                )
        except OSError as e:
            log.info(f"Could not launch {' '.join(self._command)}: {e}")
            return False
        return True
