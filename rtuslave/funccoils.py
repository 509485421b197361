"""Handlers for the coil function codes: read coils, write one, write many."""

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
_READ_COUNT_MAX = 0x07D0

_WRITE_SIZE = 4
_WRITE_VALUE_OFF = PDU_DATA_OFF + 2

_WRITE_MUL_COUNT_OFF = PDU_DATA_OFF + 2
_WRITE_MUL_BYTECNT_OFF = PDU_DATA_OFF + 4
_WRITE_MUL_VALUES_OFF = PDU_DATA_OFF + 5
_WRITE_MUL_COUNT_MAX = 0x07B0


def _word(frame: bytes, offset: int) -> int:
    return int.from_bytes(frame[offset:offset + 2], "big")


def _address(frame: bytes) -> int:
    """Return the 1-based register address carried right after the function code."""
    return (_word(frame, PDU_DATA_OFF) + 1) & 0xFFFF


def _bytes_for_bits(count: int) -> int:
    return ((count + 7) // 8) & 0xFF


def _illegal_value() -> ModbusExceptionResponse:
    return ModbusExceptionResponse(ExceptionCode.ILLEGAL_DATA_VALUE)


def read_coils(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Answer a read-coils request PDU with the packed coil states."""
    frame = bytes(frame)
    if len(frame) != _READ_SIZE + PDU_SIZE_MIN:
        raise _illegal_value()
    address = _address(frame)
    count = _word(frame, PDU_DATA_OFF + 2)
    if not 1 <= count < _READ_COUNT_MAX:
        raise _illegal_value()
    n_bytes = _bytes_for_bits(count)
    try:
        data = bank.read_coils(address, count)
    except ModbusError as exc:
        raise ModbusExceptionResponse(error_to_exception(exc.error)) from exc
    return bytes([FunctionCode.READ_COILS, n_bytes]) + data


def write_coil(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Apply a write-single-coil request; the response echoes the request."""
    frame = bytes(frame)
    if len(frame) != _WRITE_SIZE + PDU_SIZE_MIN:
        raise _illegal_value()
    address = _address(frame)
    high, low = frame[_WRITE_VALUE_OFF], frame[_WRITE_VALUE_OFF + 1]
    if low != 0x00 or high not in (0xFF, 0x00):
        raise _illegal_value()
    state = 1 if high == 0xFF else 0
    try:
        bank.write_coils(address, 1, bytes([state]))
    except ModbusError as exc:
        raise ModbusExceptionResponse(error_to_exception(exc.error)) from exc
    return frame


def write_multiple_coils(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Apply a write-multiple-coils request; respond with address and quantity."""
    frame = bytes(frame)
    if len(frame) <= _WRITE_SIZE + PDU_SIZE_MIN:
        raise _illegal_value()
    address = _address(frame)
    count = _word(frame, _WRITE_MUL_COUNT_OFF)
    byte_count = frame[_WRITE_MUL_BYTECNT_OFF]
    if not (1 <= count <= _WRITE_MUL_COUNT_MAX and _bytes_for_bits(count) == byte_count):
        raise _illegal_value()
    values = frame[_WRITE_MUL_VALUES_OFF:]
    if len(values) < byte_count:
        raise _illegal_value()
    try:
        bank.write_coils(address, count, values[:byte_count])
    except ModbusError as exc:
        raise ModbusExceptionResponse(error_to_exception(exc.error)) from exc
    return frame[:_WRITE_MUL_BYTECNT_OFF]