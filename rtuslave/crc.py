"""CRC-16 checksum used by Modbus RTU framing."""

from __future__ import annotations

_POLYNOMIAL = 0xA001
_INITIAL = 0xFFFF


def _table_entry(index: int) -> int:
    value = index
    for _ in range(8):
        if value & 1:
            value = (value >> 1) ^ _POLYNOMIAL
        else:
            value >>= 1
    return value


_TABLE: tuple[int, ...] = tuple(_table_entry(i) for i in range(256))


def crc16(data: bytes | bytearray | memoryview) -> int:
    """Return the Modbus CRC-16 of ``data``.

    The low byte of the result is transmitted first on the wire. Running the
    checksum over a frame that already ends in its CRC yields zero.
    """
    crc = _INITIAL
    for byte in bytes(data):
        crc = (crc >> 8) ^ _TABLE[(crc ^ byte) & 0xFF]
    return crc