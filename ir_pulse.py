"""Busy-polling pulse timer.

Durations are counted in ticks of 100 ns so that protocol constants can be
written as integers (a 2.4 ms Sony start burst is 24000 ticks).
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from ir_line import InputLine

TICK_NS = 100

# returned by ``measure`` when the wait was cancelled
CANCELLED = None


def us_to_ticks(us: float) -> int:
    """Convert microseconds to ticks."""
    return int(us * 1000 // TICK_NS)


class PulseTimer:
    """Time how long an input line stays at a given level.

    ``poll_interval`` is the number of seconds slept between two reads of the
    line; the default of 0 spins without yielding, which gives the best
    resolution at the cost of a busy core. ``check_every`` is the number of
    reads between two looks at the cancellation flag.
    """

    def __init__(
        self,
        clock: Callable[[], int] = time.monotonic_ns,
        poll_interval: float = 0.0,
        check_every: int = 1,
    ) -> None:
        if check_every < 1:
            raise ValueError("check_every must be at least 1")
        self.clock = clock
        self.poll_interval = poll_interval
        self.check_every = check_every

    def _wait_while(self, line: InputLine, level: int, same: bool, cancel: threading.Event) -> bool:
        reads = 0
        while (line.read() == level) == same:
            reads += 1
            if reads >= self.check_every:
                reads = 0
                if cancel.is_set():
                    return False
            if self.poll_interval:
                time.sleep(self.poll_interval)
        return not cancel.is_set()

    def measure(self, line: InputLine, level: int, cancel: threading.Event) -> Optional[int]:
        """Return the length in ticks of the next pulse at ``level``.

        If the line is not at ``level`` yet, wait for the edge into it first.
        Returns ``CANCELLED`` as soon as ``cancel`` is set.
        """
        if cancel.is_set():
            return CANCELLED
        if not self._wait_while(line, level, False, cancel):
            return CANCELLED
        start = self.clock()
        if not self._wait_while(line, level, True, cancel):
            return CANCELLED
        return (self.clock() - start) // TICK_NS
