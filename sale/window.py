"""
Astro Sale - Sale Window

Tracks the public sale window and derives its end and reveal times.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .exceptions import InvalidDuration, SaleNotActive

# 48 hours between the end of the sale and the reveal time
DEFAULT_REVEAL_DELAY_SECONDS = 172800


@dataclass
class SaleWindow:
    """Public sale window state."""

    active: bool = False
    start_time: int = 0
    duration_seconds: int = 0
    reveal_delay_seconds: int = DEFAULT_REVEAL_DELAY_SECONDS

    def __post_init__(self):
        if self.active and self.start_time <= 0:
            raise ValueError("An active sale window needs a positive start time")

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration_seconds

    @property
    def reveal_time(self) -> int:
        """Zero until the window has been opened at least once."""
        if self.start_time == 0:
            return 0
        return self.end_time + self.reveal_delay_seconds

    def open(self, now: int, duration_seconds: int) -> None:
        """Open (or restart) the window at `now`."""
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) \
                or duration_seconds <= 0:
            raise InvalidDuration(f"Sale duration must be a positive integer: {duration_seconds!r}")
        if now <= 0:
            raise ValueError("Sale start time must be a positive timestamp")

        self.active = True
        self.start_time = now
        self.duration_seconds = duration_seconds

    def close(self) -> None:
        self.active = False

    def is_open(self, now: int) -> bool:
        """Active and not yet past its end time."""
        return self.active and now <= self.end_time

    def remaining(self, now: int) -> int:
        """Seconds left in an open window."""
        if not self.active:
            raise SaleNotActive("Public sale is not active")

        remaining = self.duration_seconds - (now - self.start_time)
        if remaining < 0:
            raise SaleNotActive(f"Public sale ended {-remaining} seconds ago")
        return remaining

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "start_time": self.start_time,
            "duration_seconds": self.duration_seconds,
            "end_time": self.end_time,
            "reveal_time": self.reveal_time,
        }
