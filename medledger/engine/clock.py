"""
Time sources.

The engine never reads a clock itself; callers read one of these once per
operation and pass the value in as `now`.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Current logical time as a non-negative integer."""
        ...


class SystemClock:
    """Wall-clock seconds since the epoch."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Explicitly driven clock for tests and replays. Never moves backwards."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("start must be non-negative")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, delta: int) -> int:
        if delta < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += delta
        return self._now

    def set(self, value: int) -> int:
        if value < self._now:
            raise ValueError(f"ManualClock cannot move backwards ({value} < {self._now})")
        self._now = value
        return self._now
