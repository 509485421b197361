"""Modbus RTU framing: receiver and transmitter state machines."""

from __future__ import annotations

import enum

from .crc import crc16
from .events import EventQueue, EventType
from .port import SerialPort, Timer
from .protocol import PDU_SIZE_MAX, ErrorCode, ModbusError

SER_PDU_SIZE_MIN = 4
SER_PDU_SIZE_MAX = 256
SER_PDU_SIZE_CRC = 2
SER_PDU_ADDR_OFF = 0
SER_PDU_PDU_OFF = 1

_FIXED_BAUD_THRESHOLD = 19200
_FIXED_T35_50US = 35


class RxState(enum.Enum):
    """States of the receiver."""

    INIT = enum.auto()
    IDLE = enum.auto()
    RECEIVING = enum.auto()
    ERROR = enum.auto()


class TxState(enum.Enum):
    """States of the transmitter."""

    IDLE = enum.auto()
    TRANSMITTING = enum.auto()


def t35_timeout_50us(baud_rate: int) -> int:
    """Return the t3.5 inter-frame delay in 50 microsecond ticks.

    Above 19200 baud a fixed delay is used; otherwise it is 3.5 character
    times of 11 bits each.
    """
    if baud_rate <= 0:
        raise ValueError(f"baud rate must be positive, got {baud_rate}")
    if baud_rate > _FIXED_BAUD_THRESHOLD:
        return _FIXED_T35_50US
    return (7 * 220000) // (2 * baud_rate)


class RtuTransport:
    """Frames and unframes Modbus PDUs on a serial line in RTU mode."""

    def __init__(
        self,
        serial: SerialPort,
        timer: Timer,
        events: EventQueue,
        baud_rate: int,
    ) -> None:
        self.serial = serial
        self.timer = timer
        self.events = events
        self.baud_rate = baud_rate
        self.rx_state = RxState.INIT
        self.tx_state = TxState.IDLE
        self._rx_buffer = bytearray()
        self._tx_pending = b""
        try:
            self.timer.configure(t35_timeout_50us(baud_rate))
        except ValueError as exc:
            raise ModbusError(ErrorCode.PORT_ERROR, str(exc)) from exc

    def start(self) -> None:
        """Enable reception and wait t3.5 for the bus to become idle."""
        self.rx_state = RxState.INIT
        self.serial.enable(True, False)
        self.timer.enable()

    def stop(self) -> None:
        """Disable the serial line and the timer."""
        self.serial.enable(False, False)
        self.timer.disable()

    def receive(self) -> tuple[int, bytes]:
        """Return the slave address and PDU of the last received frame.

        Raises :class:`ModbusError` with ``IO_ERROR`` if the frame is too
        short, too long or fails its CRC.
        """
        frame = bytes(self._rx_buffer)
        if not SER_PDU_SIZE_MIN <= len(frame) < SER_PDU_SIZE_MAX or crc16(frame) != 0:
            raise ModbusError(ErrorCode.IO_ERROR, "received frame is invalid")
        return frame[SER_PDU_ADDR_OFF], frame[SER_PDU_PDU_OFF:-SER_PDU_SIZE_CRC]

    def send(self, address: int, pdu: bytes | bytearray) -> None:
        """Frame ``pdu`` for ``address`` and start transmitting it.

        Raises :class:`ModbusError` with ``IO_ERROR`` if the receiver is not
        idle, which means another frame arrived while this one was prepared.
        """
        pdu = bytes(pdu)
        if len(pdu) > PDU_SIZE_MAX:
            raise ValueError(f"PDU of {len(pdu)} bytes exceeds {PDU_SIZE_MAX}")
        if self.rx_state is not RxState.IDLE:
            raise ModbusError(ErrorCode.IO_ERROR, "receiver is not idle")
        frame = bytes([address & 0xFF]) + pdu
        frame += crc16(frame).to_bytes(2, "little")
        self._tx_pending = frame
        self.tx_state = TxState.TRANSMITTING
        self.serial.enable(False, True)

    def receive_fsm(self) -> bool:
        """Handle one received character; returns whether a poll is needed."""
        if self.tx_state is not TxState.IDLE:
            raise ModbusError(ErrorCode.ILLEGAL_STATE, "character received while transmitting")
        byte = self.serial.get_byte()

        if self.rx_state is RxState.IDLE:
            self._rx_buffer = bytearray([byte])
            self.rx_state = RxState.RECEIVING
        elif self.rx_state is RxState.RECEIVING:
            if len(self._rx_buffer) < SER_PDU_SIZE_MAX:
                self._rx_buffer.append(byte)
            else:
                self.rx_state = RxState.ERROR
        self.timer.enable()
        return False

    def transmit_fsm(self) -> bool:
        """Send the next character, if any; returns whether a poll is needed."""
        if self.rx_state is not RxState.IDLE:
            raise ModbusError(ErrorCode.ILLEGAL_STATE, "transmitter used while receiver is busy")

        if self.tx_state is TxState.IDLE:
            self.serial.enable(True, False)
            return False

        if self._tx_pending:
            self.serial.put_byte(self._tx_pending[0])
            self._tx_pending = self._tx_pending[1:]
            return False

        need_poll = self.events.post(EventType.FRAME_SENT)
        self.serial.enable(True, False)
        self.tx_state = TxState.IDLE
        return need_poll

    def timer_t35_expired(self) -> bool:
        """Handle the end of a t3.5 silence; returns whether a poll is needed."""
        need_poll = False
        if self.rx_state is RxState.INIT:
            need_poll = self.events.post(EventType.READY)
        elif self.rx_state is RxState.RECEIVING:
            need_poll = self.events.post(EventType.FRAME_RECEIVED)
        self.timer.disable()
        self.rx_state = RxState.IDLE
        return need_poll