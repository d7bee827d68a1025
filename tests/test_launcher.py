from __future__ import annotations

import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional

import psutil
import pytest

from deskflow_watchdog.core.connection import process_finder
from deskflow_watchdog.core.connection.process_finder import PsutilProcessFinder, SubprocessGuiLauncher
from fakes import GUI_PATTERN


class _Popen:
    created: List["_Popen"] = []

    def __init__(self, args, **kwargs) -> None:
        self.args = args
        self.kwargs = kwargs
        self.pid = 4242 + len(_Popen.created)
        self.returncode: Optional[int] = None
        self.polls = 0
        _Popen.created.append(self)

    def poll(self) -> Optional[int]:
        self.polls += 1
        return self.returncode


@pytest.fixture
def popen(monkeypatch: pytest.MonkeyPatch) -> List[_Popen]:
    _Popen.created = []
    monkeypatch.setattr(process_finder.subprocess, "Popen", _Popen)
    return _Popen.created


def test_spawn_is_detached_and_logs_to_file(popen: List[_Popen], tmp_path: Path) -> None:
    log_file = tmp_path / "deskflow-auto.log"
    launcher = SubprocessGuiLauncher(["deskflow", "--no-tray"], str(log_file))

    assert launcher.spawn()

    (proc,) = popen
    assert proc.args == ["deskflow", "--no-tray"]
    assert proc.kwargs["start_new_session"] is True
    assert proc.kwargs["stdin"] == subprocess.DEVNULL
    assert proc.kwargs["stderr"] == subprocess.STDOUT
    assert proc.kwargs["stdout"].name == str(log_file)
    assert log_file.exists()
    assert launcher.pid == proc.pid


def test_display_defaulted_only_when_unset(popen: List[_Popen], tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    launcher = SubprocessGuiLauncher(["deskflow"], str(tmp_path / "out.log"), default_display=":0")

    monkeypatch.delenv("DISPLAY", raising=False)
    launcher.spawn()
    monkeypatch.setenv("DISPLAY", ":1")
    launcher.spawn()

    assert [p.kwargs["env"]["DISPLAY"] for p in popen] == [":0", ":1"]


def test_spawn_failure_returns_false(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    def missing(args, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr(process_finder.subprocess, "Popen", missing)
    launcher = SubprocessGuiLauncher(["deskflow"], str(tmp_path / "out.log"))

    with caplog.at_level("INFO"):
        assert not launcher.spawn()

    assert launcher.pid is None
    assert "Could not launch deskflow" in caplog.text


def test_unwritable_log_returns_false(popen: List[_Popen], tmp_path: Path) -> None:
    launcher = SubprocessGuiLauncher(["deskflow"], str(tmp_path / "missing-dir" / "out.log"))

    assert not launcher.spawn()
    assert popen == []


def test_spawn_reaps_previous_child(popen: List[_Popen], tmp_path: Path) -> None:
    launcher = SubprocessGuiLauncher(["deskflow"], str(tmp_path / "out.log"))
    launcher.spawn()
    first = popen[0]
    first.returncode = 1

    launcher.spawn()

    assert first.polls == 1
    assert launcher.pid == popen[1].pid


def test_reap_leaves_live_child_alone(popen: List[_Popen], tmp_path: Path) -> None:
    launcher = SubprocessGuiLauncher(["deskflow"], str(tmp_path / "out.log"))
    assert launcher.reap() is None

    launcher.spawn()

    assert launcher.reap() is None
    assert launcher.pid == popen[0].pid


def _wait_for_zombie(pid: int, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if psutil.Process(pid).status() == psutil.STATUS_ZOMBIE:
            return
        time.sleep(0.05)
    pytest.fail(f"pid {pid} did not exit")


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs /bin/sh and Linux process names")
def test_crashed_gui_is_not_reported_running(tmp_path: Path) -> None:
    # A script named like the GUI: once it exits unreaped its name is still "deskflow"
    script = tmp_path / "deskflow"
    script.write_text("#!/bin/sh\necho started\nexit 1\n", encoding="utf-8")
    script.chmod(0o755)
    log_file = tmp_path / "deskflow-auto.log"
    launcher = SubprocessGuiLauncher([str(script)], str(log_file))

    assert launcher.spawn()
    pid = launcher.pid
    assert pid is not None
    _wait_for_zombie(pid)

    assert all(p.pid != pid for p in PsutilProcessFinder().find(GUI_PATTERN))
    assert launcher.reap() == 1
    assert launcher.pid is None
    assert "started" in log_file.read_text(encoding="utf-8")
