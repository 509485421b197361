"""Handlers for the holding-register function codes."""

from __future__ import annotations

from .protocol import (
    PDU_DATA_OFF,
    PDU_SIZE_MIN,
    ExceptionCode,
    FunctionCode,
    ModbusError,
    ModbusExceptionResponse,
    error_to_exception,
)
from .registers import RegisterBank

_READ_SIZE = 4
_READ_COUNT_MAX = 0x007D

_WRITE_SIZE = 4
_WRITE_VALUE_OFF = PDU_DATA_OFF + 2

_WRITE_MUL_COUNT_OFF = PDU_DATA_OFF + 2
_WRITE_MUL_BYTECNT_OFF = PDU_DATA_OFF + 4
_WRITE_MUL_VALUES_OFF = PDU_DATA_OFF + 5
_WRITE_MUL_SIZE_MIN = 5
_WRITE_MUL_COUNT_MAX = 0x0078

_RW_READ_ADDR_OFF = PDU_DATA_OFF
_RW_READ_COUNT_OFF = PDU_DATA_OFF + 2
_RW_WRITE_ADDR_OFF = PDU_DATA_OFF + 4
_RW_WRITE_COUNT_OFF = PDU_DATA_OFF + 6
_RW_BYTECNT_OFF = PDU_DATA_OFF + 8
_RW_WRITE_VALUES_OFF = PDU_DATA_OFF + 9
_RW_SIZE_MIN = 9
_RW_READ_COUNT_MAX = 0x7D
_RW_WRITE_COUNT_MAX = 0x79


def _word(frame: bytes, offset: int) -> int:
    return int.from_bytes(frame[offset:offset + 2], "big")


def _address(frame: bytes, offset: int = PDU_DATA_OFF) -> int:
    """Return the 1-based register address stored at ``offset``."""
    return (_word(frame, offset) + 1) & 0xFFFF


def _illegal_value() -> ModbusExceptionResponse:
    return ModbusExceptionResponse(ExceptionCode.ILLEGAL_DATA_VALUE)


def _as_exception(exc: ModbusError) -> ModbusExceptionResponse:
    return ModbusExceptionResponse(error_to_exception(exc.error))


def write_holding_register(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Apply a write-single-register request; the response echoes the request."""
    frame = bytes(frame)
    if len(frame) != _WRITE_SIZE + PDU_SIZE_MIN:
        raise _illegal_value()
    address = _address(frame)
    try:
        bank.write_holding_registers(address, frame[_WRITE_VALUE_OFF:_WRITE_VALUE_OFF + 2])
    except ModbusError as exc:
        raise _as_exception(exc) from exc
    return frame


def write_multiple_holding_registers(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Apply a write-multiple-registers request; respond with address and quantity."""
    frame = bytes(frame)
    if len(frame) < _WRITE_MUL_SIZE_MIN + PDU_SIZE_MIN:
        raise _illegal_value()
    address = _address(frame)
    count = _word(frame, _WRITE_MUL_COUNT_OFF)
    byte_count = frame[_WRITE_MUL_BYTECNT_OFF]
    if not (1 <= count <= _WRITE_MUL_COUNT_MAX and byte_count == (2 * count) & 0xFF):
        raise _illegal_value()
    values = frame[_WRITE_MUL_VALUES_OFF:_WRITE_MUL_VALUES_OFF + 2 * count]
    if len(values) < 2 * count:
        raise _illegal_value()
    try:
        bank.write_holding_registers(address, values)
    except ModbusError as exc:
        raise _as_exception(exc) from exc
    return frame[:_WRITE_MUL_BYTECNT_OFF]


def read_holding_registers(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Answer a read-holding-registers request with big-endian register values.

    Only the low byte of the requested quantity is taken into account.
    """
    frame = bytes(frame)
    if len(frame) != _READ_SIZE + PDU_SIZE_MIN:
        raise _illegal_value()
    address = _address(frame)
    count = frame[PDU_DATA_OFF + 3]
    if not 1 <= count <= _READ_COUNT_MAX:
        raise _illegal_value()
    try:
        data = bank.read_holding_registers(address, count)
    except ModbusError as exc:
        raise _as_exception(exc) from exc
    return bytes([FunctionCode.READ_HOLDING_REGISTERS, (count * 2) & 0xFF]) + data


def read_write_multiple_holding_registers(
    frame: bytes | bytearray, bank: RegisterBank
) -> bytes:
    """Write registers, then read registers, as one read/write-multiple request.

    The write is carried out before the read, so it stays applied even if the
    read then fails. A request too short to parse is returned unchanged.
    """
    frame = bytes(frame)
    if len(frame) < _RW_SIZE_MIN + PDU_SIZE_MIN:
        return frame
    read_address = _address(frame, _RW_READ_ADDR_OFF)
    read_count = _word(frame, _RW_READ_COUNT_OFF)
    write_address = _address(frame, _RW_WRITE_ADDR_OFF)
    write_count = _word(frame, _RW_WRITE_COUNT_OFF)
    byte_count = frame[_RW_BYTECNT_OFF]
    if not (
        1 <= read_count <= _RW_READ_COUNT_MAX
        and 1 <= write_count <= _RW_WRITE_COUNT_MAX
        and 2 * write_count == byte_count
    ):
        raise _illegal_value()
    values = frame[_RW_WRITE_VALUES_OFF:_RW_WRITE_VALUES_OFF + byte_count]
    if len(values) < byte_count:
        raise _illegal_value()
    try:
        bank.write_holding_registers(write_address, values)
        data = bank.read_holding_registers(read_address, read_count)
    except ModbusError as exc:
        raise _as_exception(exc) from exc
    header = bytes([FunctionCode.READ_WRITE_MULTIPLE_REGISTERS, (read_count * 2) & 0xFF])
    return header + data