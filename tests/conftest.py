import bisect
import itertools

import pytest

from ir_line import HIGH, LOW, release_line
from ir_pulse import TICK_NS, PulseTimer

_names = itertools.count()


class SimulatedLine:
    """Input line that plays back ``(level, ticks)`` segments.

    Every read advances a virtual clock by ``step`` ticks; once the script is
    over the line idles at ``idle``.
    """

    def __init__(self, segments=(), step=25, idle=HIGH, name=None):
        self.name = name or f"sim:{next(_names)}"
        self.step = step
        self.idle = idle
        self.now = 0
        self.closed = False
        self._ends = []
        self._levels = []
        t = 0
        for level, ticks in segments:
            t += ticks
            self._ends.append(t)
            self._levels.append(level)

    def clock(self):
        return self.now * TICK_NS

    def read(self):
        self.now += self.step
        i = bisect.bisect_right(self._ends, self.now)
        return self._levels[i] if i < len(self._levels) else self.idle

    def close(self):
        self.closed = True

    def timer(self):
        return PulseTimer(clock=self.clock)


def sony_segments(bursts):
    segments = [(HIGH, 10000), (LOW, 24000)]
    for width in bursts:
        segments += [(HIGH, 6000), (LOW, width)]
    segments.append((HIGH, 50000))
    return segments


def sony_bursts(command, address):
    bits = [(command >> i) & 1 for i in range(7)] + [(address >> i) & 1 for i in range(5)]
    return [13000 if b else 6000 for b in bits]


def nec_spaces(*data):
    bits = [(byte >> i) & 1 for byte in data for i in range(8)]
    return [16875 if b else 5625 for b in bits]


def nec_segments(spaces, header=45000):
    segments = [(HIGH, 10000), (LOW, 90000), (HIGH, header)]
    for width in spaces:
        segments += [(LOW, 5625), (HIGH, width)]
    segments += [(LOW, 5625), (HIGH, 400000)]
    return segments


@pytest.fixture
def make_line():
    lines = []

    def factory(segments=(), **kwargs):
        line = SimulatedLine(segments, **kwargs)
        lines.append(line)
        return line

    yield factory
    for line in lines:
        release_line(line.name)
