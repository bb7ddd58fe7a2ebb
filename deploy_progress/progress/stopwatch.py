"""Elapsed time tracking for a resource's status history."""

from __future__ import annotations

import time
from collections.abc import Callable


class StopWatch:
    """Measures how long an operation takes.

    ``start()`` only takes effect on the first call, ``stop()`` only while
    running.  ``reset()`` returns the watch to its initial state so a new
    operation on the same resource can be timed.

    Args:
        clock: Returns the current time in seconds.  Replaced in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.start_time = 0.0
        self.stop_time = 0.0
        self.started = False
        self.stopped = False

    def start(self) -> None:
        if self.started:
            return
        self.start_time = self.clock()
        self.started = True

    def stop(self) -> None:
        if not self.started or self.stopped:
            return
        self.stop_time = self.clock()
        self.stopped = True

    def reset(self) -> None:
        self.start_time = 0.0
        self.stop_time = 0.0
        self.started = False
        self.stopped = False

    def elapsed(self) -> tuple[float, bool]:
        """Return the elapsed seconds and whether the watch was ever started."""
        if not self.started:
            return 0.0, False
        end = self.stop_time if self.stopped else self.clock()
        return end - self.start_time, True
