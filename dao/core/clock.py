# MIT License
# Copyright (c) 2025 Hashborn

"""
Time sources for the DAO runtime.

Every component reads "now" through a Clock so that simulations and tests
can move time forward deterministically.
"""
import threading
import time

from tokenomics.config.params import DAY_SECONDS


class Clock:
    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock seconds, never going backwards within one process."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class ManualClock(Clock):
    """Clock advanced explicitly by the caller."""

    def __init__(self, start: int = 0):
        self._now = int(start)
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds}s")
        with self._lock:
            self._now += int(seconds)
            return self._now

    def advance_days(self, days: float) -> int:
        return self.advance(int(days * DAY_SECONDS))

    def set(self, timestamp: int) -> int:
        with self._lock:
            if timestamp < self._now:
                raise ValueError(f"Clock is monotonic: {timestamp} < {self._now}")
            self._now = int(timestamp)
            return self._now
