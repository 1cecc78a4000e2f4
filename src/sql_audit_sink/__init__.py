"""
sql-audit-sink: synchronous audit logging to a database table.

Each log event is committed as one row before the logging call returns, and
any write failure is raised at the call site instead of being buffered,
retried or dropped.
"""

__version__ = "0.1.0"

from sql_audit_sink.columns import ColumnOptions, SqlColumn, StandardColumn
from sql_audit_sink.config import DEFAULT_SCHEMA_NAME, SinkOptions, TableExistsPolicy
from sql_audit_sink.dependencies import (
    EventWriter,
    SinkDependencies,
    TableCreator,
    TableShape,
    TableShapeBuilder,
    create_sink_dependencies,
)
from sql_audit_sink.errors import AuditSinkError, ConfigurationError, TableExistsError
from sql_audit_sink.events import LogEvent, json_log_event_formatter
from sql_audit_sink.memory import MemoryEventWriter
from sql_audit_sink.sinks import AuditLogHandler, LogEventSink, SqlAuditSink, add_audit_handler
from sql_audit_sink.validation import ValidationError

__all__ = [
    "__version__",
    # Core
    "SqlAuditSink",
    "SinkOptions",
    "TableExistsPolicy",
    "DEFAULT_SCHEMA_NAME",
    # Columns
    "ColumnOptions",
    "SqlColumn",
    "StandardColumn",
    # Events
    "LogEvent",
    "json_log_event_formatter",
    # Collaborators
    "EventWriter",
    "SinkDependencies",
    "TableCreator",
    "TableShape",
    "TableShapeBuilder",
    "create_sink_dependencies",
    "MemoryEventWriter",
    # Logging integration
    "AuditLogHandler",
    "LogEventSink",
    "add_audit_handler",
    # Errors
    "AuditSinkError",
    "ConfigurationError",
    "TableExistsError",
    "ValidationError",
]
