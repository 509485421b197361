# rtuslave

A Modbus RTU slave protocol stack in pure Python. It uses only the standard
library.

## What is in the package

- `rtuslave.crc.crc16(data)` returns the Modbus CRC-16 of a byte string. If you run
  it over a frame that already ends in its CRC, the result is 0.
- `rtuslave.bits.set_bits` and `rtuslave.bits.get_bits` write and read bit fields of
  up to 8 bits. The fields are packed least significant bit first.
- `rtuslave.protocol` holds the shared definitions:
  - the enums `ErrorCode`, `ExceptionCode` and `FunctionCode`;
  - the exceptions `ModbusError`, which has a `.error` attribute, and
    `ModbusExceptionResponse`, which has a `.code` attribute;
  - `error_to_exception`.
- `rtuslave.registers.RegisterBank` keeps four in-memory tables with 1-based
  addressing: `input_registers`, `holding_registers`, `coils` and `discrete_inputs`.
  - Each table has 10 entries by default.
  - Coils and discrete inputs start as `1,1,1,1,0,0,0,0,1,1`.
  - Every read of discrete inputs inverts all of them afterwards. This simulates
    inputs that change between polls.
  - An access that runs outside a table raises `ModbusError` with `NO_REGISTER`.
  - `map_error_to_exception` maps any `ErrorCode` to an `ExceptionCode`.
- Function handlers have the form `handler(pdu, bank) -> response_pdu`. A handler
  raises `ModbusExceptionResponse` when the master must get an exception reply.
  - `rtuslave.funccoils`: `read_coils` (1), `write_coil` (5) and
    `write_multiple_coils` (15).
  - `rtuslave.funcdisc`: `read_discrete_inputs` (2).
  - `rtuslave.funcholding`:
    - `read_holding_registers` (3). It uses only the low byte of the requested
      quantity.
    - `write_holding_register` (6).
    - `write_multiple_holding_registers` (16).
    - `read_write_multiple_holding_registers` (23). It does the write first, then
      the read.
  - `rtuslave.funcinput`: `read_input_registers` (4).
  - `rtuslave.funcother.SlaveIdentity`: `report_slave_id` (17). Set its data with
    `set(slave_id, is_running, additional)`.
- `rtuslave.events.EventQueue` is a single-slot queue of `EventType` values. Posting
  an event replaces any event that is already waiting.
- `rtuslave.port` has two software objects:
  - `SerialPort`. You hand it received bytes with `feed`. Bytes it sends collect in
    `transmitted`.
  - `Timer`, a one-shot t3.5 timer counted in 50 µs ticks.
- `rtuslave.rtu.RtuTransport` runs the RTU receive and transmit state machines.
  - A frame ends after the t3.5 silent interval.
  - It checks the CRC of incoming frames and adds the CRC to outgoing ones.
  - `t35_timeout_50us(baud_rate)` gives the delay: 35 ticks above 19200 baud,
    otherwise 3.5 character times.
- `rtuslave.stack.ModbusSlave` is the poll loop. It serves a `RegisterBank` and a
  `SlaveIdentity`, and handles function codes 1, 2, 3, 4, 5, 6, 15, 16, 17 and 23
  out of the box. Use `register_handler(code, handler)` to install a handler, or
  pass `None` as the handler to remove one.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install .[test]
```

## Usage

You drive the serial line and the timer. Feed them bytes, report timer expiries,
and collect the bytes they send.

```python
from rtuslave.events import EventQueue
from rtuslave.funcother import SlaveIdentity
from rtuslave.port import SerialPort, Timer
from rtuslave.registers import RegisterBank
from rtuslave.rtu import RtuTransport
from rtuslave.stack import ModbusSlave

events = EventQueue()
serial = SerialPort()
timer = Timer()
transport = RtuTransport(serial, timer, events, 9600)
bank = RegisterBank(10, 10, 10, 10)
identity = SlaveIdentity(32)
identity.set(0x01, True, b"")

slave = ModbusSlave(1, transport, events, bank, identity)
slave.enable()

# The bus has been idle for t3.5: the transport becomes ready.
transport.timer_t35_expired()
slave.poll()                      # EventType.READY

# A master reads holding register 1 from slave 1.
bank.holding_registers[0] = 0x1234
for byte in b"\x01\x03\x00\x00\x00\x01\x84\x0a":
    serial.feed(byte)
    transport.receive_fsm()
transport.timer_t35_expired()     # end of frame

slave.poll()                      # EventType.FRAME_RECEIVED
slave.poll()                      # EventType.EXECUTE: handler runs, reply is framed

while serial.tx_enabled:
    transport.transmit_fsm()      # one byte per call, then FRAME_SENT

print(serial.transmitted.hex())   # 01 03 02 12 34 followed by the CRC
```

How the stack behaves:

- Each call to `poll()` handles at most one queued event and returns it. If no event
  is waiting, it returns `None`.
- Calling `poll()` while the slave is disabled raises `ModbusError` with
  `ILLEGAL_STATE`.
- The stack drops frames that are malformed or fail the CRC check.
- It ignores requests addressed to another slave.
- It carries out broadcast requests (address 0) but sends no reply.
- For a function code with no handler, the reply is an exception with
  `ILLEGAL_FUNCTION`.

## Checksums

```python
from rtuslave.crc import crc16

crc16(b"\x01\x03\x00\x00\x00\x01")  # 0x0A84, sent low byte first: 84 0A
```

## What the package does not do

- It does not open a real serial port and has no hardware timer. `SerialPort` and
  `Timer` are in-memory objects, and your code must move bytes and report timer
  expiries itself.
- It implements RTU framing only. There is no ASCII or TCP transport.
- It has no handlers for the diagnostic function codes (7, 8, 11, 12) that are
  listed in `FunctionCode`.
- It provides no command-line program.

## Running the tests

```
pytest
```