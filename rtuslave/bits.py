"""Reading and writing bit fields packed least significant bit first."""

from __future__ import annotations

_BITS_PER_BYTE = 8


def _locate(buf_len: int, bit_offset: int, n_bits: int) -> tuple[int, int, bool]:
    if not 0 <= n_bits <= _BITS_PER_BYTE:
        raise ValueError(f"bit field width must be 0..8, got {n_bits}")
    if bit_offset < 0:
        raise ValueError(f"bit offset must not be negative, got {bit_offset}")
    byte_offset, pre_bits = divmod(bit_offset, _BITS_PER_BYTE)
    if byte_offset >= buf_len:
        raise IndexError(f"bit offset {bit_offset} is outside a {buf_len}-byte buffer")
    spans = pre_bits + n_bits > _BITS_PER_BYTE
    if spans and byte_offset + 1 >= buf_len:
        raise IndexError(f"bit field at {bit_offset} runs past the end of the buffer")
    return byte_offset, pre_bits, spans


def set_bits(buf: bytearray, bit_offset: int, n_bits: int, value: int) -> None:
    """Store ``value`` in ``n_bits`` bits of ``buf`` starting at ``bit_offset``."""
    byte_offset, pre_bits, spans = _locate(len(buf), bit_offset, n_bits)
    if not 0 <= value < (1 << n_bits) and not (n_bits == 0 and value == 0):
        raise ValueError(f"value {value} does not fit in {n_bits} bits")

    width = 2 if spans else 1
    word = int.from_bytes(buf[byte_offset:byte_offset + width], "little")
    mask = ((1 << n_bits) - 1) << pre_bits
    word = (word & ~mask) | (value << pre_bits)
    buf[byte_offset:byte_offset + width] = word.to_bytes(width, "little")


def get_bits(buf: bytes | bytearray | memoryview, bit_offset: int, n_bits: int) -> int:
    """Return ``n_bits`` bits of ``buf`` starting at ``bit_offset``."""
    byte_offset, pre_bits, spans = _locate(len(buf), bit_offset, n_bits)
    width = 2 if spans else 1
    word = int.from_bytes(bytes(buf[byte_offset:byte_offset + width]), "little")
    return (word >> pre_bits) & ((1 << n_bits) - 1)