"""
Log event sinks for sql-audit-sink.

Sinks accept log events one at a time; AuditLogHandler plugs a sink into
the standard library logging pipeline.
"""

from sql_audit_sink.sinks.audit import SqlAuditSink
from sql_audit_sink.sinks.base import LogEventSink
from sql_audit_sink.sinks.logging_handler import AuditLogHandler, add_audit_handler

__all__ = [
    "AuditLogHandler",
    "LogEventSink",
    "SqlAuditSink",
    "add_audit_handler",
]
