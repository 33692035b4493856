"""Consumer IR protocol constants and decoders.

Each protocol is described by a ``ProtocolSpec``: where the frame starts,
which line level carries the data, how long a train is and how to turn the
measured durations into a ``(command, address)`` pair. All durations are in
ticks (see ``ir_pulse.TICK_NS``).

The receiver module on the line is active low: an IR burst reads as LOW and
the gaps between bursts read as HIGH.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ir_errors import DecodeError
from ir_line import HIGH, LOW

# Sony SIRC, 12 bit variant
SONY_TRAIN_LENGTH = 12
SONY_START_SEQUENCE = 20000  # shortest accepted start burst (2.4 ms nominal)
SONY_LOGICAL_ONE = 12000  # 1.2 ms burst = 1, 0.6 ms burst = 0

# NEC
NEC_TRAIN_LENGTH = 32
NEC_LEADER_BURST = 80000  # 9 ms nominal
NEC_HEADER_SPACE = 40000  # 4.5 ms nominal, 2.25 ms on a repeat code
NEC_LOGICAL_ONE = 11250  # 1.6875 ms space = 1, 0.5625 ms space = 0


class Protocol(enum.Enum):
    NEC = "nec"
    SONY = "sony"

    @classmethod
    def parse(cls, text: str) -> "Protocol":
        try:
            return cls(text.strip().lower())
        except ValueError:
            names = ", ".join(p.value for p in cls)
            raise ValueError(f"unknown protocol {text!r} (expected one of: {names})") from None


def pulses_to_bits(pulses: Sequence[int], threshold: int) -> list[int]:
    """Classify each duration: 1 if longer than ``threshold``, else 0."""
    return [1 if p > threshold else 0 for p in pulses]


def bits_to_int(bits: Sequence[int]) -> int:
    """Assemble ``bits`` least significant bit first."""
    value = 0
    for i, b in enumerate(bits):
        value |= b << i
    return value


def _check_length(pulses: Sequence[int], expected: int) -> None:
    if len(pulses) != expected:
        raise DecodeError(f"expected {expected} pulses, got {len(pulses)}")


def decode_sony(pulses: Sequence[int]) -> tuple[int, int]:
    """Decode a 12 bit SIRC train into ``(command, address)``.

    SIRC carries no checksum, so any train of the right length decodes.
    """
    _check_length(pulses, SONY_TRAIN_LENGTH)
    bits = pulses_to_bits(pulses, SONY_LOGICAL_ONE)
    return bits_to_int(bits[:7]), bits_to_int(bits[7:])


def decode_nec(pulses: Sequence[int]) -> tuple[int, int]:
    """Decode the 32 data spaces of an NEC frame into ``(command, address)``.

    The third byte must be the complement of the command. When the second
    byte is the complement of the first the address is 8 bits wide,
    otherwise the frame uses the extended 16 bit address.
    """
    _check_length(pulses, NEC_TRAIN_LENGTH)
    bits = pulses_to_bits(pulses, NEC_LOGICAL_ONE)
    addr, addr_check, cmd, cmd_check = (bits_to_int(bits[i:i + 8]) for i in range(0, 32, 8))
    if cmd_check != cmd ^ 0xFF:
        raise DecodeError(f"command check failed: 0x{cmd:02X} / 0x{cmd_check:02X}")
    if addr_check == addr ^ 0xFF:
        return cmd, addr
    return cmd, addr | addr_check << 8


@dataclass(frozen=True)
class ProtocolSpec:
    protocol: Protocol
    start_level: int
    start_min: int
    data_level: int
    one_threshold: int
    train_length: int
    decode: Callable[[Sequence[int]], tuple[int, int]]
    header_level: int = HIGH
    header_min: Optional[int] = None


SONY = ProtocolSpec(
    protocol=Protocol.SONY,
    start_level=LOW,
    start_min=SONY_START_SEQUENCE,
    data_level=LOW,
    one_threshold=SONY_LOGICAL_ONE,
    train_length=SONY_TRAIN_LENGTH,
    decode=decode_sony,
)

NEC = ProtocolSpec(
    protocol=Protocol.NEC,
    start_level=LOW,
    start_min=NEC_LEADER_BURST,
    data_level=HIGH,
    one_threshold=NEC_LOGICAL_ONE,
    train_length=NEC_TRAIN_LENGTH,
    decode=decode_nec,
    header_level=HIGH,
    header_min=NEC_HEADER_SPACE,
)

SPECS = {Protocol.SONY: SONY, Protocol.NEC: NEC}


def get_spec(protocol: Protocol) -> ProtocolSpec:
    return SPECS[protocol]
