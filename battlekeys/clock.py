"""
Clocks for the Battle Keys simulation.

Every time read in the game goes through one of these, so tests and
headless runs can advance time without sleeping.
"""

import time


class SystemClock:
    """Wall clock backed by time.monotonic(), in whole milliseconds."""

    def now_ms(self) -> int:
        return int(time.monotonic() * 1000)


class ManualClock:
    """
    Virtual clock that only moves when told to.

    Usage:
        clock = ManualClock()
        clock.advance(16)
        clock.now_ms()  # 16
    """

    def __init__(self, start_ms: int = 0) -> None:
        self._now_ms = start_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and return the new time."""
        if delta_ms < 0:
            raise ValueError("ManualClock cannot run backwards")
        self._now_ms += delta_ms
        return self._now_ms

    def set(self, now_ms: int) -> None:
        self._now_ms = now_ms
