"""
Exception types raised by sql-audit-sink.

Failures raised by the SQL collaborators themselves (SQLAlchemy errors,
driver errors) are never wrapped: they reach the caller unchanged.
"""


class AuditSinkError(Exception):
    """Base class for errors raised by sql-audit-sink itself."""


class ConfigurationError(AuditSinkError, ValueError):
    """Raised when sink or column configuration cannot be used for auditing."""


class TableExistsError(AuditSinkError):
    """Raised when the destination table exists and the exists-policy is FAIL."""

    def __init__(self, schema_name: str | None, table_name: str) -> None:
        self.schema_name = schema_name
        self.table_name = table_name
        qualified = f"{schema_name}.{table_name}" if schema_name else table_name
        super().__init__(f"Table {qualified} already exists")
