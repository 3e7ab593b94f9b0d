"""
Clock implementations.

Settlement operations never wait on time. Deadlines are stored as integers
and compared against the reading of an injected clock.
"""

import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Monotone time source in whole seconds."""

    @abstractmethod
    def now(self) -> int:
        ...


class SystemClock(Clock):
    """Wall clock, truncated to seconds."""

    def now(self) -> int:
        return int(time.time())


class DeterministicClock(Clock):
    """
    Deterministic time source.

    In production: caller advances it from an external monotonic reading.
    In tests: advance manually.

    Unlike a wall clock, two runs with the same advance() calls observe
    identical timestamps.
    """

    def __init__(self, current: int = 0) -> None:
        self._current = current
        self._lock = threading.Lock()

    def now(self) -> int:
        """Get current timestamp without advancing."""
        return self._current

    def advance(self, step: int = 1) -> int:
        """
        Advance clock by step and return the new reading.

        Raises:
            ValueError: If step is negative (clock must stay monotone)
        """
        if step < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._current += step
            return self._current
