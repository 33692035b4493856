"""Input line backed by a Raspberry Pi GPIO through lgpio."""

from __future__ import annotations

import logging

import lgpio

from ir_errors import ResourceInUse

logger = logging.getLogger(__name__)

RX_PIN = 23  # GPIO wired to the IR receiver module


class GpioLine:
    """Read the IR receiver output on ``pin`` of ``/dev/gpiochip<chip>``."""

    def __init__(self, chip: int = 0, pin: int = RX_PIN, pull_up: bool = False) -> None:
        self.name = f"gpiochip{chip}:{pin}"
        self.pin = pin
        self._handle = lgpio.gpiochip_open(chip)
        flags = lgpio.SET_PULL_UP if pull_up else 0
        try:
            lgpio.gpio_claim_input(self._handle, pin, flags)
        except lgpio.error as e:
            lgpio.gpiochip_close(self._handle)
            raise ResourceInUse(f"cannot claim {self.name}: {e}") from e
        logger.debug(f"opened {self.name} (pull_up={pull_up})")

    def read(self) -> int:
        return lgpio.gpio_read(self._handle, self.pin)

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            lgpio.gpio_free(self._handle, self.pin)
        finally:
            lgpio.gpiochip_close(self._handle)
            self._handle = None
        logger.debug(f"closed {self.name}")
