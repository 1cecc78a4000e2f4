"""
Logging handler for audit sinks.

Registers a LogEventSink into the standard library logging pipeline. Unlike
ordinary handlers, AuditLogHandler never routes write failures to
handleError(): the exception raised by the sink propagates out of the
logger call that produced the record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sql_audit_sink.columns import ColumnOptions
from sql_audit_sink.config import SinkOptions
from sql_audit_sink.events import FormatProvider, LogEvent, LogEventFormatter
from sql_audit_sink.sinks.audit import SqlAuditSink
from sql_audit_sink.sinks.base import LogEventSink

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_log = logging.getLogger(__name__)


class AuditLogHandler(logging.Handler):
    """
    Logging handler forwarding every record to a log event sink.

    Each record is converted with LogEvent.from_record() and emitted on the
    calling thread. Closing the handler disposes the sink.

    Args:
        sink: The sink that receives events.
        level: Minimum level handled (default NOTSET).

    Example:
        handler = AuditLogHandler(sink)
        logging.getLogger("app.audit").addHandler(handler)
    """

    def __init__(self, sink: LogEventSink, level: int | str = logging.NOTSET) -> None:
        super().__init__(level)
        self._sink = sink

    @property
    def sink(self) -> LogEventSink:
        """Return the sink."""
        return self._sink

    def emit(self, record: logging.LogRecord) -> None:
        """Write the record through the sink. Failures propagate to the caller."""
        self._sink.emit(LogEvent.from_record(record))

    def close(self) -> None:
        """Dispose the sink and close the handler."""
        try:
            self._sink.dispose()
        finally:
            super().close()


def add_audit_handler(
    logger: logging.Logger | str,
    connection: str | Engine,
    sink_options: SinkOptions,
    *,
    format_provider: FormatProvider | None = None,
    column_options: ColumnOptions | None = None,
    log_event_formatter: LogEventFormatter | None = None,
    level: int | str = logging.NOTSET,
) -> AuditLogHandler:
    """
    Build a SqlAuditSink and attach it to a logger.

    If construction fails nothing is attached and the error propagates.

    Args:
        logger: Logger or logger name.
        connection: SQLAlchemy database URL or an existing Engine.
        sink_options: Table name, schema name and auto-creation settings.
        format_provider: Optional callable used to render property values in messages.
        column_options: Column options, or None for the defaults.
        log_event_formatter: Custom formatter for the LogEvent column.
        level: Minimum level handled (default NOTSET).

    Returns:
        The attached handler.
    """
    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    sink = SqlAuditSink.from_options(
        connection,
        sink_options,
        format_provider=format_provider,
        column_options=column_options,
        log_event_formatter=log_event_formatter,
    )
    handler = AuditLogHandler(sink, level=level)
    logger.addHandler(handler)
    _log.debug(
        "Attached audit handler for table %s to logger %s", sink_options.table_name, logger.name
    )
    return handler
