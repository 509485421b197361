import pytest
from hypothesis import given
from hypothesis import strategies as st

from rtuslave.bits import get_bits, set_bits


def test_reads_bits_lsb_first():
    buf = bytes([0b00000101])
    assert get_bits(buf, 0, 1) == 1
    assert get_bits(buf, 1, 1) == 0
    assert get_bits(buf, 2, 1) == 1


def test_field_spanning_two_bytes():
    buf = bytearray(2)
    set_bits(buf, 6, 4, 0b1111)
    assert get_bits(buf, 6, 4) == 0b1111
    assert get_bits(buf, 0, 6) == 0
    assert get_bits(buf, 10, 6) == 0


def test_set_leaves_neighbours_untouched():
    buf = bytearray([0xFF, 0xFF])
    set_bits(buf, 4, 4, 0)
    assert get_bits(buf, 0, 4) == 0x0F
    assert get_bits(buf, 4, 4) == 0
    assert buf[1] == 0xFF


def test_field_in_last_byte_does_not_need_a_following_byte():
    buf = bytearray(1)
    set_bits(buf, 3, 5, 0b10101)
    assert get_bits(buf, 3, 5) == 0b10101


def test_width_above_eight_is_rejected():
    with pytest.raises(ValueError):
        get_bits(bytes(4), 0, 9)


def test_value_too_wide_is_rejected():
    with pytest.raises(ValueError):
        set_bits(bytearray(2), 0, 3, 8)


def test_offset_outside_buffer():
    with pytest.raises(IndexError):
        get_bits(bytes(1), 8, 1)


def test_field_running_past_end():
    with pytest.raises(IndexError):
        set_bits(bytearray(1), 6, 4, 1)


@given(
    st.binary(min_size=4, max_size=4),
    st.integers(min_value=0, max_value=24),
    st.integers(min_value=1, max_value=8),
    st.data(),
)
def test_set_then_get_round_trip(initial, offset, width, data):
    value = data.draw(st.integers(min_value=0, max_value=(1 << width) - 1))
    buf = bytearray(initial)
    set_bits(buf, offset, width, value)
    assert get_bits(buf, offset, width) == value
    # Bits outside the field keep their previous values.
    original = int.from_bytes(initial, "little")
    updated = int.from_bytes(buf, "little")
    mask = ((1 << width) - 1) << offset
    assert original & ~mask == updated & ~mask