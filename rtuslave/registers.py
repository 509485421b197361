"""In-memory register tables served by the slave."""

from __future__ import annotations

import logging

from .protocol import ErrorCode, ExceptionCode, ModbusError

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 10
_DEFAULT_BITS = (1, 1, 1, 1, 0, 0, 0, 0, 1, 1)


def _initial_bits(size: int) -> list[int]:
    return [_DEFAULT_BITS[i] if i < len(_DEFAULT_BITS) else 0 for i in range(size)]


def _pack_bits(bits: list[int]) -> bytes:
    packed = bytearray((len(bits) + 7) // 8)
    for position, bit in enumerate(bits):
        if bit:
            packed[position // 8] |= 1 << (position % 8)
    return bytes(packed)


class RegisterBank:
    """Input, holding, coil and discrete-input tables with 1-based addressing."""

    def __init__(
        self,
        input_size: int = DEFAULT_SIZE,
        holding_size: int = DEFAULT_SIZE,
        coil_size: int = DEFAULT_SIZE,
        discrete_size: int = DEFAULT_SIZE,
    ) -> None:
        self.input_registers: list[int] = [0] * input_size
        self.holding_registers: list[int] = [0] * holding_size
        self.coils: list[int] = _initial_bits(coil_size)
        self.discrete_inputs: list[int] = _initial_bits(discrete_size)

    @staticmethod
    def _span(table: list[int], address: int, count: int) -> slice:
        index = address - 1
        if index < 0 or count < 0 or index + count > len(table):
            raise ModbusError(ErrorCode.NO_REGISTER)
        return slice(index, index + count)

    @staticmethod
    def _encode_words(values: list[int]) -> bytes:
        return b"".join((value & 0xFFFF).to_bytes(2, "big") for value in values)

    def read_input_registers(self, address: int, count: int) -> bytes:
        """Return ``count`` input registers from ``address`` as big-endian words."""
        span = self._span(self.input_registers, address, count)
        return self._encode_words(self.input_registers[span])

    def read_holding_registers(self, address: int, count: int) -> bytes:
        """Return ``count`` holding registers from ``address`` as big-endian words."""
        span = self._span(self.holding_registers, address, count)
        return self._encode_words(self.holding_registers[span])

    def write_holding_registers(self, address: int, data: bytes | bytearray | memoryview) -> None:
        """Store big-endian words from ``data`` into holding registers at ``address``."""
        raw = bytes(data)
        if len(raw) % 2:
            raise ValueError("register data must hold whole 16-bit words")
        count = len(raw) // 2
        span = self._span(self.holding_registers, address, count)
        self.holding_registers[span] = [
            int.from_bytes(raw[offset:offset + 2], "big") for offset in range(0, len(raw), 2)
        ]
        if count:
            value = self.holding_registers[address - 1]
            signed = value - 0x10000 if value & 0x8000 else value
            logger.debug("holding register write: %d %d", address, signed)

    def read_coils(self, address: int, count: int) -> bytes:
        """Return ``count`` coils from ``address`` packed least significant bit first."""
        span = self._span(self.coils, address, count)
        return _pack_bits(self.coils[span])

    def write_coils(self, address: int, count: int, data: bytes | bytearray | memoryview) -> None:
        """Set ``count`` coils from ``address`` using bits packed in ``data``."""
        span = self._span(self.coils, address, count)
        raw = bytes(data)
        if len(raw) < (count + 7) // 8:
            raise ValueError(f"{count} coils need {(count + 7) // 8} data bytes, got {len(raw)}")
        self.coils[span] = [(raw[i // 8] >> (i % 8)) & 0x01 for i in range(count)]

    def read_discrete_inputs(self, address: int, count: int) -> bytes:
        """Return ``count`` discrete inputs from ``address`` packed LSB first.

        Every read inverts all discrete inputs afterwards, simulating inputs
        that change between polls.
        """
        span = self._span(self.discrete_inputs, address, count)
        packed = _pack_bits(self.discrete_inputs[span])
        self.discrete_inputs = [0 if bit else 1 for bit in self.discrete_inputs]
        return packed


_ERROR_EXCEPTIONS = {
    ErrorCode.NO_REGISTER: ExceptionCode.ILLEGAL_DATA_ADDRESS,
    ErrorCode.INVALID: ExceptionCode.ILLEGAL_DATA_VALUE,
    ErrorCode.NO_RESOURCES: ExceptionCode.SLAVE_DEVICE_FAILURE,
    ErrorCode.TIMED_OUT: ExceptionCode.SLAVE_BUSY,
    ErrorCode.PORT_ERROR: ExceptionCode.SLAVE_DEVICE_FAILURE,
    ErrorCode.NONE: ExceptionCode.NONE,
}


def map_error_to_exception(error: ErrorCode) -> ExceptionCode:
    """Map a stack error to a Modbus exception code, defaulting to device failure."""
    return _ERROR_EXCEPTIONS.get(error, ExceptionCode.SLAVE_DEVICE_FAILURE)