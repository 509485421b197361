"""The Modbus slave protocol stack: dispatches received requests to handlers."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass

from .events import EventQueue, EventType
from .funccoils import read_coils, write_coil, write_multiple_coils
from .funcdisc import read_discrete_inputs
from .funcholding import (
    read_holding_registers,
    read_write_multiple_holding_registers,
    write_holding_register,
    write_multiple_holding_registers,
)
from .funcinput import read_input_registers
from .funcother import SlaveIdentity
from .protocol import (
    ADDRESS_BROADCAST,
    ADDRESS_MAX,
    ADDRESS_MIN,
    FUNC_ERROR,
    PDU_FUNC_OFF,
    ErrorCode,
    ExceptionCode,
    FunctionCode,
    ModbusError,
    ModbusExceptionResponse,
)
from .registers import RegisterBank
from .rtu import RtuTransport

HANDLERS_MAX = 16
FUNCTION_CODE_MAX = 127

Handler = Callable[[bytes, RegisterBank], bytes]


class _State(enum.Enum):
    ENABLED = enum.auto()
    DISABLED = enum.auto()


@dataclass
class _Slot:
    function_code: int
    handler: Handler


class ModbusSlave:
    """A Modbus slave bound to one address, serving a register bank.

    The slave starts disabled; :meth:`enable` starts the transport and
    :meth:`poll` then processes one pending event per call.
    """

    def __init__(
        self,
        address: int,
        transport: RtuTransport,
        events: EventQueue,
        bank: RegisterBank | None = None,
        identity: SlaveIdentity | None = None,
    ) -> None:
        if address == ADDRESS_BROADCAST or not ADDRESS_MIN <= address <= ADDRESS_MAX:
            raise ModbusError(ErrorCode.INVALID, f"invalid slave address {address}")
        self.address = address
        self.transport = transport
        self.events = events
        self.bank = bank if bank is not None else RegisterBank()
        self.identity = identity if identity is not None else SlaveIdentity()
        defaults: list[tuple[int, Handler]] = [
            (FunctionCode.REPORT_SLAVE_ID, self.identity.report_slave_id),
            (FunctionCode.READ_INPUT_REGISTERS, read_input_registers),
            (FunctionCode.READ_HOLDING_REGISTERS, read_holding_registers),
            (FunctionCode.WRITE_MULTIPLE_REGISTERS, write_multiple_holding_registers),
            (FunctionCode.WRITE_SINGLE_REGISTER, write_holding_register),
            (FunctionCode.READ_WRITE_MULTIPLE_REGISTERS, read_write_multiple_holding_registers),
            (FunctionCode.READ_COILS, read_coils),
            (FunctionCode.WRITE_SINGLE_COIL, write_coil),
            (FunctionCode.WRITE_MULTIPLE_COILS, write_multiple_coils),
            (FunctionCode.READ_DISCRETE_INPUTS, read_discrete_inputs),
        ]
        self._slots: list[_Slot | None] = [_Slot(int(code), handler) for code, handler in defaults]
        self._slots += [None] * (HANDLERS_MAX - len(self._slots))
        self._state = _State.DISABLED
        self._rcv_address = ADDRESS_BROADCAST
        self._frame = b""
        self.events.clear()

    @property
    def enabled(self) -> bool:
        """Whether the stack is currently enabled."""
        return self._state is _State.ENABLED

    def register_handler(self, function_code: int, handler: Handler | None) -> None:
        """Install ``handler`` for ``function_code``, or remove it when ``handler`` is None.

        Raises :class:`ModbusError` with ``INVALID`` for a code outside 1..127
        and with ``NO_RESOURCES`` when the handler table is full.
        """
        if not 0 < function_code <= FUNCTION_CODE_MAX:
            raise ModbusError(ErrorCode.INVALID, f"invalid function code {function_code}")
        if handler is not None:
            for index, slot in enumerate(self._slots):
                if slot is None or slot.handler == handler:
                    self._slots[index] = _Slot(function_code, handler)
                    return
            raise ModbusError(ErrorCode.NO_RESOURCES, "handler table is full")
        for index, slot in enumerate(self._slots):
            if slot is not None and slot.function_code == function_code:
                self._slots[index] = None
                return

    def close(self) -> None:
        """Release the transport; only allowed while the stack is disabled."""
        if self._state is not _State.DISABLED:
            raise ModbusError(ErrorCode.ILLEGAL_STATE, "stack must be disabled to close")
        closer = getattr(self.transport, "close", None)
        if callable(closer):
            closer()

    def enable(self) -> None:
        """Start the transport; raises ``ILLEGAL_STATE`` if already enabled."""
        if self._state is not _State.DISABLED:
            raise ModbusError(ErrorCode.ILLEGAL_STATE, "stack is already enabled")
        self.transport.start()
        self._state = _State.ENABLED

    def disable(self) -> None:
        """Stop the transport if it is running."""
        if self._state is _State.ENABLED:
            self.transport.stop()
            self._state = _State.DISABLED

    def _find_handler(self, function_code: int) -> Handler | None:
        for slot in self._slots:
            if slot is None or slot.function_code == 0:
                return None
            if slot.function_code == function_code:
                return slot.handler
        return None

    def _execute(self) -> None:
        if not self._frame:
            return
        function_code = self._frame[PDU_FUNC_OFF]
        handler = self._find_handler(function_code)
        exception = ExceptionCode.ILLEGAL_FUNCTION
        response = b""
        if handler is not None:
            try:
                response = handler(self._frame, self.bank)
                exception = ExceptionCode.NONE
            except ModbusExceptionResponse as exc:
                exception = exc.code

        if self._rcv_address == ADDRESS_BROADCAST:
            return
        if exception is not ExceptionCode.NONE:
            response = bytes([(function_code | FUNC_ERROR) & 0xFF, exception])
        try:
            self.transport.send(self.address, response)
        except ModbusError:
            pass

    def poll(self) -> EventType | None:
        """Process one pending event and return it, or None if none was pending.

        Raises :class:`ModbusError` with ``ILLEGAL_STATE`` unless enabled.
        """
        if self._state is not _State.ENABLED:
            raise ModbusError(ErrorCode.ILLEGAL_STATE, "stack is not enabled")
        event = self.events.get()
        if event is EventType.FRAME_RECEIVED:
            try:
                self._rcv_address, self._frame = self.transport.receive()
            except ModbusError:
                return event
            if self._rcv_address in (self.address, ADDRESS_BROADCAST):
                self.events.post(EventType.EXECUTE)
        elif event is EventType.EXECUTE:
            self._execute()
        return event