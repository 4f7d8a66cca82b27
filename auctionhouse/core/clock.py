"""
Time sources for the engine.

The engine never reads the wall clock directly; it asks an injected
Clock for the current Unix timestamp (seconds).
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current Unix time in whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock advanced explicitly by the caller.

    Used by tests and simulations to step through auction deadlines
    deterministically.
    """

    def __init__(self, start: int = 0):
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        """Move time forward and return the new timestamp."""
        if seconds < 0:
            raise ValueError("Cannot move a clock backwards")
        with self._lock:
            self._now += seconds
            return self._now

    def set(self, timestamp: int) -> None:
        """Jump to an absolute timestamp (never backwards)."""
        with self._lock:
            if timestamp < self._now:
                raise ValueError(f"Cannot move clock from {self._now} back to {timestamp}")
            self._now = timestamp
