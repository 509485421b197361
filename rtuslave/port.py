"""Simulated serial line and character timer used by the RTU transport."""

from __future__ import annotations

from collections import deque

_TIMEOUT_MAX = 0xFFFF


def _check_byte(byte: int) -> int:
    if not 0 <= byte <= 0xFF:
        raise ValueError(f"byte value must be 0..255, got {byte}")
    return byte


class SerialPort:
    """A serial line with separate receive and transmit enables.

    Incoming characters are handed in with :meth:`feed` and taken by the
    transport with :meth:`get_byte`. Characters sent by the transport collect
    in :attr:`transmitted`.
    """

    def __init__(self) -> None:
        self.rx_enabled = False
        self.tx_enabled = False
        self.transmitted = bytearray()
        self._received: deque[int] = deque()

    def enable(self, rx_enable: bool, tx_enable: bool) -> None:
        """Switch the receiver and the transmitter on or off."""
        self.rx_enabled = bool(rx_enable)
        self.tx_enabled = bool(tx_enable)

    def put_byte(self, byte: int) -> bool:
        """Transmit one character."""
        self.transmitted.append(byte & 0xFF)
        return True

    def get_byte(self) -> int:
        """Return the next received character.

        Raises :class:`LookupError` if nothing has been received.
        """
        if not self._received:
            raise LookupError("no character has been received")
        return self._received.popleft()

    def feed(self, byte: int) -> None:
        """Deliver one character to the receiver."""
        self._received.append(_check_byte(byte))


class Timer:
    """A one-shot inter-frame timer counted in 50 microsecond ticks."""

    def __init__(self) -> None:
        self.timeout_50us: int | None = None
        self.running = False
        self.starts = 0

    def configure(self, timeout_50us: int) -> bool:
        """Set the timeout; raises :class:`ValueError` if it does not fit 16 bits."""
        if not 1 <= timeout_50us <= _TIMEOUT_MAX:
            raise ValueError(f"timer timeout must be 1..{_TIMEOUT_MAX} ticks, got {timeout_50us}")
        self.timeout_50us = timeout_50us
        return True

    def enable(self) -> None:
        """Start the timer from zero, restarting it if it is already running."""
        self.running = True
        self.starts += 1

    def disable(self) -> None:
        """Stop the timer."""
        self.running = False