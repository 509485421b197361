"""A single-slot event queue connecting the transport to the poll loop."""

from __future__ import annotations

import enum


class EventType(enum.Enum):
    """Events raised by the transport layer."""

    READY = enum.auto()
    FRAME_RECEIVED = enum.auto()
    EXECUTE = enum.auto()
    FRAME_SENT = enum.auto()


class EventQueue:
    """Holds at most one pending event; posting replaces any earlier one."""

    def __init__(self) -> None:
        self._event: EventType | None = None

    @property
    def pending(self) -> bool:
        """Whether an event is waiting to be taken."""
        return self._event is not None

    def post(self, event: EventType) -> bool:
        """Queue ``event``, replacing any pending one; returns True as a poll hint."""
        self._event = EventType(event)
        return True

    def get(self) -> EventType | None:
        """Take the pending event, or return None if there is none."""
        event, self._event = self._event, None
        return event

    def clear(self) -> None:
        """Drop any pending event."""
        self._event = None