"""
In-memory event writer for testing and development.
"""

from sql_audit_sink.events import LogEvent


class MemoryEventWriter:
    """
    Event writer that stores events in a list.

    Useful for testing and development. Not intended for production use.
    """

    def __init__(self) -> None:
        self.events: list[LogEvent] = []

    def write_event(self, event: LogEvent) -> None:
        """
        Store an event in memory.

        Args:
            event: The log event.
        """
        self.events.append(event)

    def clear(self) -> None:
        """Clear all stored events."""
        self.events.clear()

    def __len__(self) -> int:
        """Return the number of stored events."""
        return len(self.events)
