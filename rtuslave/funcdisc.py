"""Handler for the read-discrete-inputs function code."""

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


def read_discrete_inputs(frame: bytes | bytearray, bank: RegisterBank) -> bytes:
    """Answer a read-discrete-inputs request PDU with the packed input states."""
    frame = bytes(frame)
    if len(frame) != _READ_SIZE + PDU_SIZE_MIN:
        raise ModbusExceptionResponse(ExceptionCode.ILLEGAL_DATA_VALUE)
    address = (int.from_bytes(frame[PDU_DATA_OFF:PDU_DATA_OFF + 2], "big") + 1) & 0xFFFF
    count = int.from_bytes(frame[PDU_DATA_OFF + 2:PDU_DATA_OFF + 4], "big")
    if not 1 <= count < _READ_COUNT_MAX:
        raise ModbusExceptionResponse(ExceptionCode.ILLEGAL_DATA_VALUE)
    n_bytes = ((count + 7) // 8) & 0xFF
    try:
        data = bank.read_discrete_inputs(address, count)
    except ModbusError as exc:
        raise ModbusExceptionResponse(error_to_exception(exc.error)) from exc
    return bytes([FunctionCode.READ_DISCRETE_INPUTS, n_bytes]) + data