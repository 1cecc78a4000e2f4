"""
SQL collaborators for the audit sink, built on SQLAlchemy Core.
"""

from sql_audit_sink.sql.shape import SqlTableShape, SqlTableShapeBuilder, build_table
from sql_audit_sink.sql.table_creator import SqlTableCreator
from sql_audit_sink.sql.writer import SqlLogEventWriter

__all__ = [
    "SqlLogEventWriter",
    "SqlTableCreator",
    "SqlTableShape",
    "SqlTableShapeBuilder",
    "build_table",
]
