"""
Physical table creation.
"""

from __future__ import annotations

import logging

from sqlalchemy import MetaData, inspect
from sqlalchemy.engine import Engine

from sql_audit_sink.columns import ColumnOptions
from sql_audit_sink.config import TableExistsPolicy
from sql_audit_sink.errors import TableExistsError
from sql_audit_sink.sql.shape import SqlTableShape

_log = logging.getLogger(__name__)


class SqlTableCreator:
    """
    Creates the audit table described by a SqlTableShape.

    The existence check and the DDL run in one transaction.

    Args:
        engine: Engine for the destination database.
        if_exists: IGNORE leaves an existing table untouched, FAIL raises
            TableExistsError (default IGNORE).
    """

    def __init__(
        self,
        engine: Engine,
        *,
        if_exists: TableExistsPolicy = TableExistsPolicy.IGNORE,
    ) -> None:
        self._engine = engine
        self._if_exists = TableExistsPolicy(if_exists)

    @property
    def if_exists(self) -> TableExistsPolicy:
        """Return the table-exists policy."""
        return self._if_exists

    def create_table(
        self,
        schema_name: str | None,
        table_name: str,
        shape: SqlTableShape,
        column_options: ColumnOptions,
    ) -> None:
        """
        Create the table unless it exists.

        Raises:
            TableExistsError: If the table exists and the policy is FAIL.
            sqlalchemy.exc.SQLAlchemyError: If the database rejects the DDL.
        """
        metadata = MetaData()
        table = shape.table.to_metadata(metadata, schema=schema_name, name=table_name)

        with self._engine.begin() as conn:
            if inspect(conn).has_table(table_name, schema=schema_name):
                if self._if_exists is TableExistsPolicy.FAIL:
                    raise TableExistsError(schema_name, table_name)
                _log.debug("Audit table %s already exists, leaving it as is", table.fullname)
                return
            _log.debug(
                "Creating audit table %s with %d columns",
                table.fullname,
                len(column_options.columns),
            )
            metadata.create_all(conn, tables=[table], checkfirst=False)
