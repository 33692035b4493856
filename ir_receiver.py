"""Background IR receiver: capture loop plus lifecycle control."""

from __future__ import annotations

import datetime
import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ir_errors import DecodeError, InvalidState
from ir_line import InputLine, claim_line, release_line
from ir_protocol import Protocol, ProtocolSpec, get_spec
from ir_pulse import PulseTimer

logger = logging.getLogger(__name__)

# measure(level) -> ticks, or None once cancelled / out of data
Measure = Callable[[int], Optional[int]]


@dataclass(frozen=True)
class DecodedFrame:
    command: int
    address: int
    protocol: Protocol
    device_type: Optional[int] = None
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)

    def __str__(self) -> str:
        return (
            f"{self.protocol.name} command=0x{self.command:02X} "
            f"address=0x{self.address:02X} at {self.timestamp:%H:%M:%S.%f}"
        )


def make_frame(spec: ProtocolSpec, pulses: List[int], timestamp: Optional[datetime.datetime] = None) -> DecodedFrame:
    """Decode ``pulses`` with ``spec`` or raise ``DecodeError``."""
    command, address = spec.decode(pulses)
    device_type = address if spec.protocol is Protocol.SONY else None
    return DecodedFrame(
        command=command,
        address=address,
        protocol=spec.protocol,
        device_type=device_type,
        timestamp=timestamp or datetime.datetime.now(),
    )


def read_frame(measure: Measure, spec: ProtocolSpec) -> Optional[List[int]]:
    """Wait for a start burst and collect one pulse train.

    Returns ``None`` when ``measure`` gives up (cancellation or end of a
    recording); partial trains are never returned. A header shorter than the
    protocol minimum raises ``DecodeError``.
    """
    while True:
        width = measure(spec.start_level)
        if width is None:
            return None
        if width >= spec.start_min:
            break

    if spec.header_min is not None:
        width = measure(spec.header_level)
        if width is None:
            return None
        if width < spec.header_min:
            raise DecodeError(f"header too short ({width} ticks), repeat code?")

    pulses = []
    for _ in range(spec.train_length):
        width = measure(spec.data_level)
        if width is None:
            return None
        pulses.append(width)
    return pulses


def capture_loop(
    measure: Measure,
    spec: ProtocolSpec,
    cancel: threading.Event,
    emit: Callable[[DecodedFrame], None],
    backoff: float = 0.25,
) -> None:
    """Capture, decode and emit frames until ``cancel`` is set.

    A frame that fails for any reason is dropped; the loop keeps running.
    """
    while not cancel.is_set():
        try:
            pulses = read_frame(measure, spec)
            if pulses is None:
                break
            emit(make_frame(spec, pulses))
        except DecodeError as e:
            logger.debug(f"{spec.protocol.name} frame discarded: {e}")
        except Exception:
            logger.debug(f"{spec.protocol.name} frame failed", exc_info=True)
        if cancel.wait(backoff):
            break
    logger.debug("capture loop finished")


class ReceiverState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    DISPOSING = "disposing"
    DISPOSED = "disposed"


class Receiver:
    """Decode IR remote frames from ``line`` on a background thread.

    Listeners are called on the capture thread, in frame order, and should
    return quickly: the next capture starts only after they are done.
    """

    def __init__(
        self,
        line: InputLine,
        protocol: Protocol = Protocol.NEC,
        poll_backoff: float = 0.25,
        timer: Optional[PulseTimer] = None,
        join_timeout: float = 1.0,
        retry_interval: float = 0.25,
    ) -> None:
        claim_line(line.name)
        self.line = line
        self._poll_backoff = poll_backoff
        self.timer = timer or PulseTimer()
        self.join_timeout = join_timeout
        self.retry_interval = retry_interval
        self._protocol = protocol
        self._state = ReceiverState.STOPPED
        self._lock = threading.Lock()
        self._listeners: List[Callable[[DecodedFrame], None]] = []
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "Receiver":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()

    @property
    def state(self) -> ReceiverState:
        with self._lock:
            return self._state

    @property
    def running(self) -> bool:
        return self.state is ReceiverState.RUNNING

    @property
    def protocol(self) -> Protocol:
        with self._lock:
            return self._protocol

    @property
    def poll_backoff(self) -> float:
        return self._poll_backoff

    def set_protocol(self, protocol: Protocol) -> None:
        """Select the decoder used by the next ``start()``."""
        with self._lock:
            if self._state is not ReceiverState.STOPPED:
                raise InvalidState(f"cannot change protocol while {self._state.value}")
            self._protocol = protocol
        logger.debug(f"{self.line.name}: protocol set to {protocol.name}")

    def add_listener(self, callback: Callable[[DecodedFrame], None]) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[DecodedFrame], None]) -> None:
        with self._lock:
            self._listeners.remove(callback)

    def _notify(self, frame: DecodedFrame) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(frame)
            except Exception:
                logger.exception(f"listener {callback!r} failed")

    def start(self) -> None:
        with self._lock:
            if self._state is not ReceiverState.STOPPED:
                raise InvalidState(f"cannot start while {self._state.value}")
            spec = get_spec(self._protocol)
            cancel = threading.Event()
            line, timer = self.line, self.timer

            def measure(level: int) -> Optional[int]:
                return timer.measure(line, level, cancel)

            self._cancel = cancel
            self._thread = threading.Thread(
                target=capture_loop,
                args=(measure, spec, cancel, self._notify, self._poll_backoff),
                name=f"ir-capture-{line.name}",
                daemon=True,
            )
            self._state = ReceiverState.RUNNING
            self._thread.start()
        logger.info(f"{self.line.name}: receiving {spec.protocol.name}")

    def _begin_teardown(self) -> Optional[threading.Thread]:
        # caller holds the lock
        if self._state in (ReceiverState.DISPOSING, ReceiverState.DISPOSED):
            raise InvalidState(f"cannot stop while {self._state.value}")
        thread = self._thread
        if thread is threading.current_thread():
            raise InvalidState("cannot stop the receiver from its own capture thread")
        self._state = ReceiverState.DISPOSING
        self._cancel.set()
        return thread

    def _wait_for(self, thread: Optional[threading.Thread]) -> None:
        if thread is None:
            return
        thread.join(self.join_timeout)
        if thread.is_alive():
            logger.warning(f"{self.line.name}: capture thread still running, waiting")
        while thread.is_alive():
            thread.join(self.retry_interval)
        with self._lock:
            self._thread = None

    def stop(self) -> None:
        """Stop the capture thread and wait until it has exited."""
        with self._lock:
            if self._state is ReceiverState.STOPPED:
                return
            thread = self._begin_teardown()
        self._wait_for(thread)
        with self._lock:
            self._state = ReceiverState.STOPPED
        logger.info(f"{self.line.name}: stopped")

    def dispose(self) -> None:
        """Stop receiving and release the input line for good."""
        with self._lock:
            if self._state is ReceiverState.DISPOSED:
                return
            thread = self._begin_teardown()
        self._wait_for(thread)
        try:
            self.line.close()
        finally:
            release_line(self.line.name)
            with self._lock:
                self._state = ReceiverState.DISPOSED
        logger.info(f"{self.line.name}: disposed")
