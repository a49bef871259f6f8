"""
Astro Sale - Clock

Time source for the sale window, expressed as integer Unix timestamps.
"""

import time
from threading import Lock


class Clock:
    """Base clock interface."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock time truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """Clock that only moves when told to; used by tests and replays."""

    def __init__(self, start: int = 1_700_000_000):
        if start <= 0:
            raise ValueError("Clock start must be a positive timestamp")
        self._now = start
        self._lock = Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        with self._lock:
            self._now += seconds
            return self._now

    def set(self, timestamp: int) -> None:
        with self._lock:
            if timestamp < self._now:
                raise ValueError("Clock cannot move backwards")
            self._now = timestamp
