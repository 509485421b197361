"""The report-slave-id function and the identity data it reports."""

from __future__ import annotations

from .protocol import PDU_FUNC_OFF, ErrorCode, ModbusError
from .registers import RegisterBank

DEFAULT_BUFFER_SIZE = 32


class SlaveIdentity:
    """Identity bytes returned by the report-slave-id function."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.buffer_size = buffer_size
        self._data = b""

    @property
    def data(self) -> bytes:
        """The identity bytes as currently reported."""
        return self._data

    def set(self, slave_id: int, is_running: bool, additional: bytes | bytearray = b"") -> None:
        """Set the slave id, run indicator and additional identity bytes.

        Raises :class:`ModbusError` with ``NO_RESOURCES`` if the data does not
        fit into the identity buffer.
        """
        additional = bytes(additional)
        if len(additional) + 2 >= self.buffer_size:
            raise ModbusError(
                ErrorCode.NO_RESOURCES,
                f"{len(additional)} additional bytes do not fit a {self.buffer_size}-byte buffer",
            )
        self._data = bytes([slave_id & 0xFF, 0xFF if is_running else 0x00]) + additional

    def report_slave_id(self, frame: bytes | bytearray, bank: RegisterBank | None = None) -> bytes:
        """Answer a report-slave-id request with the function code and identity bytes."""
        return bytes(frame[PDU_FUNC_OFF:PDU_FUNC_OFF + 1]) + self._data