import pytest

from rtuslave.funcother import SlaveIdentity
from rtuslave.protocol import ErrorCode, FunctionCode, ModbusError
from rtuslave.registers import RegisterBank

REQUEST = bytes([FunctionCode.REPORT_SLAVE_ID])


def test_unset_identity_reports_only_function_code():
    assert SlaveIdentity().report_slave_id(REQUEST, RegisterBank()) == REQUEST


def test_running_identity():
    identity = SlaveIdentity()
    identity.set(0x0A, True, b"abc")
    assert identity.report_slave_id(REQUEST, RegisterBank()) == REQUEST + bytes([0x0A, 0xFF]) + b"abc"


def test_stopped_identity_without_additional():
    identity = SlaveIdentity()
    identity.set(0x05, False, b"")
    assert identity.report_slave_id(REQUEST, RegisterBank()) == REQUEST + bytes([0x05, 0x00])


def test_data_property_matches_report():
    identity = SlaveIdentity()
    identity.set(1, True, b"xyz")
    assert identity.report_slave_id(REQUEST, RegisterBank())[1:] == identity.data


def test_largest_additional_that_fits():
    identity = SlaveIdentity(buffer_size=8)
    identity.set(1, True, b"12345")
    assert len(identity.data) == 7


def test_too_much_additional_data():
    identity = SlaveIdentity(buffer_size=8)
    identity.set(1, True, b"ok")
    with pytest.raises(ModbusError) as info:
        identity.set(2, False, b"123456")
    assert info.value.error == ErrorCode.NO_RESOURCES
    assert identity.data == bytes([1, 0xFF]) + b"ok"


def test_set_replaces_previous_identity():
    identity = SlaveIdentity()
    identity.set(1, True, b"long additional")
    identity.set(2, False, b"")
    assert identity.report_slave_id(REQUEST, RegisterBank()) == REQUEST + bytes([2, 0x00])