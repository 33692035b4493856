"""Digital input lines and the process-wide claim registry."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from ir_errors import ResourceInUse

LOW = 0
HIGH = 1

logger = logging.getLogger(__name__)

_claimed: set[str] = set()
_claim_lock = threading.Lock()


class InputLine(Protocol):
    """A single digital input: read the current level, nothing more."""

    name: str

    def read(self) -> int:
        ...

    def close(self) -> None:
        ...


def claim_line(name: str) -> None:
    """Mark ``name`` as owned, raising ``ResourceInUse`` if it already is."""
    with _claim_lock:
        if name in _claimed:
            raise ResourceInUse(f"input line {name} is already in use")
        _claimed.add(name)
    logger.debug(f"claimed {name}")


def release_line(name: str) -> None:
    with _claim_lock:
        _claimed.discard(name)
    logger.debug(f"released {name}")


def is_claimed(name: str) -> bool:
    with _claim_lock:
        return name in _claimed
