"""A Modbus RTU slave protocol stack with an in-memory register bank."""

__version__ = "0.1.0"