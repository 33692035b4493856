"""Print IR remote frames received on a GPIO."""

import argparse
import logging
import time

from ir_errors import ResourceInUse
from ir_gpio import RX_PIN, GpioLine
from ir_protocol import Protocol
from ir_receiver import Receiver


def main() -> None:
    parser = argparse.ArgumentParser(description="decode IR remote signals")
    parser.add_argument("--chip", type=int, default=0, help="gpiochip number")
    parser.add_argument("--pin", type=int, default=RX_PIN, help="GPIO of the IR receiver")
    parser.add_argument("--protocol", type=Protocol.parse, default=Protocol.NEC, help="nec or sony")
    parser.add_argument("--pull-up", action="store_true", help="enable the internal pull-up")
    parser.add_argument("--backoff", type=float, default=0.25, help="pause after each frame in seconds")
    parser.add_argument("--timeout", type=float, help="stop after this many seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        format="%(levelname)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        line = GpioLine(args.chip, args.pin, pull_up=args.pull_up)
    except ResourceInUse as e:
        parser.error(str(e))

    with Receiver(line, args.protocol, poll_backoff=args.backoff) as receiver:
        receiver.add_listener(print)
        receiver.start()
        try:
            if args.timeout is None:
                while True:
                    time.sleep(1)
            else:
                time.sleep(args.timeout)
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    main()
