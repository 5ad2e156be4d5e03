"""
Time sources for the location session's wait-and-retry loop.

The session never sleeps on its own; it asks an injected Clock so that hosts
can run it against wall time and tests can run it against virtual time.
"""

from __future__ import annotations

import asyncio
import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    @abstractmethod
    def now(self) -> float:
        """Seconds on a monotonic time base."""
        pass

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        pass

    async def sleep_async(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class SystemClock(Clock):
    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class ManualClock(Clock):
    """
    Virtual clock. `sleep()` advances time instantly, so a 20 second wait
    budget runs in no wall time and always produces the same timestamps.
    """

    def __init__(self, start_time: float = 0.0):
        self._current = start_time
        self._lock = threading.Lock()
        self.sleeps = 0

    def now(self) -> float:
        with self._lock:
            return self._current

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError(f"cannot advance by negative time, got {seconds}")
        with self._lock:
            self._current += seconds
            return self._current

    def sleep(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"cannot sleep for negative time, got {seconds}")
        with self._lock:
            self._current += seconds
            self.sleeps += 1

    async def sleep_async(self, seconds: float) -> None:
        self.sleep(seconds)
        # Still yield to the loop so other tasks (and cancellation) get a turn.
        await asyncio.sleep(0)


class CancellationToken:
    """Lets a host abandon an in-flight wait from any thread."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
