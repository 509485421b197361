"""Modbus protocol constants, error codes and exceptions."""

from __future__ import annotations

import enum

PDU_FUNC_OFF = 0
PDU_DATA_OFF = 1
PDU_SIZE_MIN = 1
PDU_SIZE_MAX = 253

ADDRESS_BROADCAST = 0
ADDRESS_MIN = 1
ADDRESS_MAX = 247

FUNC_ERROR = 0x80


class ErrorCode(enum.IntEnum):
    """Errors reported by the stack and by register callbacks."""

    NONE = 0
    NO_REGISTER = 1
    INVALID = 2
    PORT_ERROR = 3
    NO_RESOURCES = 4
    IO_ERROR = 5
    ILLEGAL_STATE = 6
    TIMED_OUT = 7


class ExceptionCode(enum.IntEnum):
    """Exception codes sent back to a Modbus master."""

    NONE = 0x00
    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_DATA_ADDRESS = 0x02
    ILLEGAL_DATA_VALUE = 0x03
    SLAVE_DEVICE_FAILURE = 0x04
    ACKNOWLEDGE = 0x05
    SLAVE_BUSY = 0x06
    MEMORY_PARITY_ERROR = 0x08
    GATEWAY_PATH_FAILED = 0x0A
    GATEWAY_TARGET_FAILED = 0x0B


class FunctionCode(enum.IntEnum):
    """Modbus function codes."""

    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    DIAG_READ_EXCEPTION = 0x07
    DIAG_DIAGNOSTIC = 0x08
    DIAG_GET_COM_EVENT_COUNT = 0x0B
    DIAG_GET_COM_EVENT_LOG = 0x0C
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10
    REPORT_SLAVE_ID = 0x11
    READ_WRITE_MULTIPLE_REGISTERS = 0x17


class ModbusError(Exception):
    """An error raised by the stack, carrying an :class:`ErrorCode`."""

    def __init__(self, error: ErrorCode, message: str | None = None) -> None:
        self.error = ErrorCode(error)
        super().__init__(message or self.error.name.lower().replace("_", " "))


class ModbusExceptionResponse(Exception):
    """A request that must be answered with a Modbus exception response."""

    def __init__(self, code: ExceptionCode, message: str | None = None) -> None:
        self.code = ExceptionCode(code)
        super().__init__(message or self.code.name.lower().replace("_", " "))


def error_to_exception(error: ErrorCode) -> ExceptionCode:
    """Translate a stack error into the exception code reported to the master."""
    if error == ErrorCode.NONE:
        return ExceptionCode.NONE
    if error == ErrorCode.NO_REGISTER:
        return ExceptionCode.ILLEGAL_DATA_ADDRESS
    if error == ErrorCode.TIMED_OUT:
        return ExceptionCode.SLAVE_BUSY
    return ExceptionCode.SLAVE_DEVICE_FAILURE