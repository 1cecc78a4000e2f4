"""
Base sink interface for log events.
"""

from typing import Protocol, runtime_checkable

from sql_audit_sink.events import LogEvent


@runtime_checkable
class LogEventSink(Protocol):
    """
    Protocol for log event sinks.

    This is the pair of capabilities a logging pipeline expects from a sink:
    accept one event, and release resources when the pipeline shuts down.
    """

    def emit(self, event: LogEvent) -> None:
        """
        Emit a log event to the sink.

        Args:
            event: The log event.
        """
        ...

    def dispose(self) -> None:
        """Release the sink's resources. Must be safe to call more than once."""
        ...
