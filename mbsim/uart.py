"""The serial port, simulated with an input queue and an output record."""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from typing import Any

from mbsim.pins import Board, Pin


class UART:
    """A UART on a board.

    Incoming bytes are queued with ``feed``; bytes written are collected in
    ``output``.  ``tx`` and ``rx`` are the pins in use, or None for the USB
    serial connection.
    """

    ODD = 1
    EVEN = 0

    def __init__(self, board: Board) -> None:
        self.board = board
        self._rx: deque[int] = deque()
        self.output = bytearray()
        self.tx: Pin | None = None
        self.rx: Pin | None = None
        self.baudrate = 9600
        self.bits = 8
        self.parity = -1
        self.stop = 1
        # Time to wait between characters when reading, in milliseconds.
        self.timeout_char = 0

    @staticmethod
    def _pin(value: Any) -> Pin:
        if not isinstance(value, Pin):
            raise TypeError("expecting a pin")
        return value

    def init(
        self,
        baudrate: int = 9600,
        bits: int = 8,
        parity: int | None = None,
        stop: int = 1,
        *,
        pins: Sequence[Pin] | None = None,
        tx: Pin | None = None,
        rx: Pin | None = None,
    ) -> None:
        """Configure speed, framing and pins; ``pins`` is a legacy (tx, rx) pair."""
        parity_value = -1 if parity is None else int(parity)
        tx_pin = None if tx is None else self._pin(tx)
        rx_pin = None if rx is None else self._pin(rx)
        if pins is not None:
            items = list(pins)
            if len(items) != 2:
                raise ValueError("tuple/list has wrong length")
            tx_pin = self._pin(items[0])
            rx_pin = self._pin(items[1])
        baudrate = int(baudrate)
        self.tx = tx_pin
        self.rx = rx_pin
        self.baudrate = baudrate
        self.bits = int(bits)
        self.parity = parity_value
        self.stop = int(stop)
        # Allow 13 bit times per character.
        self.timeout_char = 13000 // baudrate + 1

    def feed(self, data: Any) -> None:
        """Queue bytes as if they had arrived on the receive line."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._rx.extend(memoryview(data).tobytes())

    def any(self) -> bool:
        """Whether any bytes are waiting to be read."""
        return bool(self._rx)

    def _take(self, size: int) -> bytes | None:
        if size == 0:
            return b""
        if not self._rx:
            return None
        count = min(size, len(self._rx))
        return bytes(self._rx.popleft() for _ in range(count))

    def read(self, nbytes: int | None = None) -> bytes | None:
        """Read up to ``nbytes`` bytes (all waiting if None); None if nothing waits."""
        if nbytes is None or nbytes < 0:
            return self._take(len(self._rx)) if self._rx else None
        return self._take(nbytes)

    def readinto(self, buf: Any) -> int | None:
        """Read into a writable buffer; return the count, or None if nothing waits."""
        target = memoryview(buf).cast("B")
        data = self._take(len(target))
        if data is None:
            return None
        target[: len(data)] = data
        return len(data)

    def readline(self) -> bytes | None:
        """Read up to and including a newline, or whatever is waiting."""
        if not self._rx:
            return None
        line = bytearray()
        while self._rx:
            byte = self._rx.popleft()
            line.append(byte)
            if byte == 0x0A:
                break
        return bytes(line)

    def write(self, buf: Any) -> int:
        """Send bytes (or text); return the number of bytes sent."""
        data = buf.encode("utf-8") if isinstance(buf, str) else memoryview(buf).tobytes()
        self.output += data
        return len(data)