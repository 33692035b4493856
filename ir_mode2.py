"""Decode IR frames from a recorded ``mode2`` log.

Usage:
  python ir_mode2.py --log key.log --protocol sony
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ir_errors import DecodeError
from ir_line import HIGH, LOW
from ir_protocol import Protocol, get_spec
from ir_pulse import us_to_ticks
from ir_receiver import DecodedFrame, make_frame, read_frame

logger = logging.getLogger(__name__)

Segment = Tuple[int, int]  # (level, ticks)

# mode2 "pulse" is an IR burst, which the receiver module reports as LOW
LEVELS = {"pulse": LOW, "space": HIGH, "timeout": HIGH}


def parse_log(path: Path) -> List[Segment]:
    """Read a mode2 log and return its ``(level, ticks)`` segments."""
    if not path.exists():
        raise FileNotFoundError(f"log file not found: {path}")

    segments: List[Segment] = []
    line_count = 0
    with path.open() as f:
        for line in f:
            line_count += 1
            parts = line.strip().split()
            if len(parts) != 2 or parts[0] not in LEVELS:
                continue
            try:
                us = int(parts[1])
            except ValueError:
                continue
            segments.append((LEVELS[parts[0]], us_to_ticks(us)))

    logger.info(f"read {line_count} lines, {len(segments)} segments")
    return segments


class SegmentCursor:
    """Measure pulses from a recording instead of a live line.

    Mirrors ``PulseTimer.measure``: skip to the next stretch at ``level`` and
    return its length. Adjacent segments at the same level are one pulse.
    Returns ``None`` once the recording is exhausted.
    """

    def __init__(self, segments: Sequence[Segment]) -> None:
        self._segments = list(segments)
        self._pos = 0

    def __call__(self, level: int) -> Optional[int]:
        segs = self._segments
        while self._pos < len(segs) and segs[self._pos][0] != level:
            self._pos += 1
        if self._pos >= len(segs):
            return None
        width = 0
        while self._pos < len(segs) and segs[self._pos][0] == level:
            width += segs[self._pos][1]
            self._pos += 1
        return width


def decode_segments(segments: Sequence[Segment], protocol: Protocol) -> List[DecodedFrame]:
    """Decode every frame of ``protocol`` found in ``segments``."""
    spec = get_spec(protocol)
    measure = SegmentCursor(segments)
    frames: List[DecodedFrame] = []
    while True:
        try:
            pulses = read_frame(measure, spec)
            if pulses is None:
                break
            frames.append(make_frame(spec, pulses))
        except DecodeError as e:
            logger.debug(f"frame discarded: {e}")
    return frames


def main() -> None:
    parser = argparse.ArgumentParser(description="decode IR frames from a mode2 log")
    parser.add_argument("--log", type=Path, required=True, help="mode2 log file")
    parser.add_argument("--protocol", type=Protocol.parse, default=Protocol.NEC, help="nec or sony")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        format="%(levelname)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        segments = parse_log(args.log)
    except FileNotFoundError as e:
        parser.error(str(e))

    frames = decode_segments(segments, args.protocol)
    if not frames:
        print("no frames decoded")
    for frame in frames:
        print(frame)


if __name__ == "__main__":
    main()
