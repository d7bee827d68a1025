from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConnectionKind(str, Enum):
    NO_GUI = "NO_GUI"
    NO_CLIENT = "NO_CLIENT"
    CLIENT_STARTING = "CLIENT_STARTING"
    CLIENT_STABLE = "CLIENT_STABLE"


@dataclass(frozen=True)
class ConnectionState:
    kind: ConnectionKind
    runtime_seconds: int = 0
    flapping: bool = False  # client restarting faster than it can stabilise

    @property
    def gui_running(self) -> bool:
        return self.kind is not ConnectionKind.NO_GUI

    @property
    def healthy(self) -> bool:
        return self.kind is ConnectionKind.CLIENT_STABLE

    @property
    def recent_failure(self) -> bool:
        return self.kind is ConnectionKind.NO_CLIENT or self.flapping

    def __str__(self) -> str:
        if self.kind in (ConnectionKind.CLIENT_STARTING, ConnectionKind.CLIENT_STABLE):
            return f"{self.kind.value}({self.runtime_seconds}s)"
        return self.kind.value


def classify_connection(
    gui_running: bool,
    client_running: bool,
    client_runtime: int,
    stable_seconds: int = 30,
    flapping_seconds: int = 15,
) -> ConnectionState:
    """
    Pure classification of agent health.

    Between flapping_seconds and stable_seconds the client exists but is not
    yet judged either way; callers should wait.
    """
    if not gui_running:
        return ConnectionState(ConnectionKind.NO_GUI)
    if not client_running:
        return ConnectionState(ConnectionKind.NO_CLIENT)
    if client_runtime > stable_seconds:
        return ConnectionState(ConnectionKind.CLIENT_STABLE, client_runtime)
    return ConnectionState(
        ConnectionKind.CLIENT_STARTING,
        client_runtime,
        flapping=client_runtime < flapping_seconds,
    )
