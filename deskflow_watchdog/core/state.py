from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class LoopState:
    """Everything the watchdog carries from one tick to the next."""
    consecutive_reconnect_attempts: int = 0
    last_key_check_time: Optional[float] = None  # monotonic seconds


@dataclass(frozen=True)
class ReconnectAttempt:
    attempt_number: int
    started_at: float
