from dataclasses import dataclass

import pytest

from rtuslave.crc import crc16
from rtuslave.events import EventQueue, EventType
from rtuslave.funcother import SlaveIdentity
from rtuslave.port import SerialPort, Timer
from rtuslave.protocol import FUNC_ERROR, ErrorCode, ExceptionCode, ModbusError
from rtuslave.registers import RegisterBank
from rtuslave.rtu import RtuTransport, TxState
from rtuslave.stack import HANDLERS_MAX, ModbusSlave

SLAVE = 0x11


@dataclass
class Rig:
    serial: SerialPort
    timer: Timer
    events: EventQueue
    transport: RtuTransport
    bank: RegisterBank
    identity: SlaveIdentity
    slave: ModbusSlave


def build_rig(address=SLAVE):
    serial = SerialPort()
    timer = Timer()
    events = EventQueue()
    transport = RtuTransport(serial, timer, events, 9600)
    bank = RegisterBank()
    identity = SlaveIdentity()
    slave = ModbusSlave(address, transport, events, bank, identity)
    return Rig(serial, timer, events, transport, bank, identity, slave)


def started_rig():
    rig = build_rig()
    rig.slave.enable()
    rig.transport.timer_t35_expired()
    assert rig.slave.poll() is EventType.READY
    return rig


def exchange(rig, address, pdu, corrupt=False):
    frame = bytes([address]) + bytes(pdu)
    frame += crc16(frame).to_bytes(2, "little")
    if corrupt:
        frame = frame[:-1] + bytes([frame[-1] ^ 0xFF])
    rig.serial.transmitted.clear()
    for byte in frame:
        rig.serial.feed(byte)
        rig.transport.receive_fsm()
    rig.transport.timer_t35_expired()
    rig.slave.poll()
    if rig.events.pending:
        rig.slave.poll()
    if rig.transport.tx_state is TxState.TRANSMITTING:
        while not rig.transport.transmit_fsm():
            pass
        assert rig.slave.poll() is EventType.FRAME_SENT
    return bytes(rig.serial.transmitted)


def unwrap(raw):
    assert crc16(raw) == 0
    return raw[0], raw[1:-2]


@pytest.mark.parametrize("address", [0, 248, 255])
def test_invalid_address_rejected(address):
    serial = SerialPort()
    timer = Timer()
    events = EventQueue()
    transport = RtuTransport(serial, timer, events, 9600)
    with pytest.raises(ModbusError) as info:
        ModbusSlave(address, transport, events, RegisterBank(), SlaveIdentity())
    assert info.value.error is ErrorCode.INVALID


def test_poll_before_enable_is_illegal_state():
    rig = build_rig()
    with pytest.raises(ModbusError) as info:
        rig.slave.poll()
    assert info.value.error is ErrorCode.ILLEGAL_STATE


def test_enable_twice_is_illegal_state():
    rig = started_rig()
    with pytest.raises(ModbusError) as info:
        rig.slave.enable()
    assert info.value.error is ErrorCode.ILLEGAL_STATE


def test_disable_stops_transport():
    rig = started_rig()
    rig.slave.disable()
    assert rig.slave.enabled is False
    assert rig.serial.rx_enabled is False
    assert rig.timer.running is False
    with pytest.raises(ModbusError):
        rig.slave.poll()


def test_close_requires_disabled():
    rig = started_rig()
    with pytest.raises(ModbusError) as info:
        rig.slave.close()
    assert info.value.error is ErrorCode.ILLEGAL_STATE
    rig.slave.disable()
    rig.slave.close()
    rig.slave.enable()
    assert rig.slave.enabled is True
    assert rig.serial.rx_enabled is True


def test_poll_without_event_returns_none():
    rig = started_rig()
    assert rig.slave.poll() is None


def test_read_holding_registers():
    rig = started_rig()
    rig.bank.holding_registers[0] = 0x1234
    rig.bank.holding_registers[1] = 0xABCD
    address, pdu = unwrap(exchange(rig, SLAVE, [0x03, 0x00, 0x00, 0x00, 0x02]))
    assert address == SLAVE
    assert pdu == bytes([0x03, 0x04, 0x12, 0x34, 0xAB, 0xCD])


def test_write_single_register_echoes():
    rig = started_rig()
    request = bytes([0x06, 0x00, 0x03, 0x01, 0x02])
    _, pdu = unwrap(exchange(rig, SLAVE, request))
    assert pdu == request
    assert rig.bank.holding_registers[3] == 0x0102


def test_unknown_function_gives_illegal_function():
    rig = started_rig()
    _, pdu = unwrap(exchange(rig, SLAVE, [0x2B, 0x00]))
    assert pdu == bytes([0x2B | FUNC_ERROR, ExceptionCode.ILLEGAL_FUNCTION])


def test_out_of_range_gives_illegal_address():
    rig = started_rig()
    _, pdu = unwrap(exchange(rig, SLAVE, [0x04, 0x00, 0x09, 0x00, 0x05]))
    assert pdu == bytes([0x04 | FUNC_ERROR, ExceptionCode.ILLEGAL_DATA_ADDRESS])


def test_broadcast_is_executed_without_reply():
    rig = started_rig()
    raw = exchange(rig, 0, [0x06, 0x00, 0x00, 0x00, 0x07])
    assert raw == b""
    assert rig.bank.holding_registers[0] == 7


def test_frame_for_other_slave_is_ignored():
    rig = started_rig()
    raw = exchange(rig, SLAVE + 1, [0x06, 0x00, 0x00, 0x00, 0x07])
    assert raw == b""
    assert rig.bank.holding_registers[0] == 0
    assert rig.events.pending is False


def test_corrupt_frame_is_ignored():
    rig = started_rig()
    raw = exchange(rig, SLAVE, [0x06, 0x00, 0x00, 0x00, 0x07], corrupt=True)
    assert raw == b""
    assert rig.bank.holding_registers[0] == 0


def test_report_slave_id():
    rig = started_rig()
    rig.identity.set(0x01, True, b"abc")
    _, pdu = unwrap(exchange(rig, SLAVE, [0x11]))
    assert pdu == bytes([0x11, 0x01, 0xFF]) + b"abc"


@pytest.mark.parametrize("code", [0, 128])
def test_register_handler_rejects_bad_code(code):
    rig = started_rig()
    with pytest.raises(ModbusError) as info:
        rig.slave.register_handler(code, lambda frame, bank: frame)
    assert info.value.error is ErrorCode.INVALID


def test_custom_handler_is_used():
    rig = started_rig()
    rig.slave.register_handler(0x41, lambda frame, bank: bytes([0x41]) + frame[1:][::-1])
    _, pdu = unwrap(exchange(rig, SLAVE, [0x41, 0x01, 0x02]))
    assert pdu == bytes([0x41, 0x02, 0x01])


def test_removed_handler_gives_illegal_function():
    rig = started_rig()
    rig.slave.register_handler(0x03, None)
    _, pdu = unwrap(exchange(rig, SLAVE, [0x03, 0x00, 0x00, 0x00, 0x01]))
    assert pdu == bytes([0x03 | FUNC_ERROR, ExceptionCode.ILLEGAL_FUNCTION])


def test_handler_table_fills_up():
    rig = started_rig()
    handlers = [lambda frame, bank, i=i: frame for i in range(HANDLERS_MAX)]
    registered = 0
    with pytest.raises(ModbusError) as info:
        for offset, handler in enumerate(handlers):
            rig.slave.register_handler(0x41 + offset, handler)
            registered += 1
    assert info.value.error is ErrorCode.NO_RESOURCES
    assert registered == HANDLERS_MAX - 10


def test_reregistering_same_handler_reuses_slot():
    rig = started_rig()

    def handler(frame, bank):
        return bytes(frame[:1]) + b"\x00"

    for code in range(0x41, 0x41 + HANDLERS_MAX):
        rig.slave.register_handler(code, handler)
    _, pdu = unwrap(exchange(rig, SLAVE, [0x41 + HANDLERS_MAX - 1]))
    assert pdu == bytes([0x41 + HANDLERS_MAX - 1, 0x00])
    _, pdu = unwrap(exchange(rig, SLAVE, [0x41]))
    assert pdu[0] == 0x41 | FUNC_ERROR