"""
In-memory table shape built from column options.

SQLAlchemy Core is used (not ORM): the shape is a Table in a private MetaData
that is cleared when the shape is released.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    MetaData,
    Numeric,
    SmallInteger,
    String,
    Table,
    Text,
    Unicode,
    UnicodeText,
    Uuid,
)
from sqlalchemy.dialects import mssql
from sqlalchemy.types import TypeEngine

from sql_audit_sink.columns import ColumnOptions, SqlColumn, StandardColumn


def sql_type(column: SqlColumn) -> TypeEngine[Any]:
    """Return the SQLAlchemy type for a finalized column."""
    data_type = column.data_type
    length = column.data_length if column.data_length > 0 else None
    if data_type == "bigint":
        # SQLite only auto-increments INTEGER primary keys
        return BigInteger().with_variant(Integer(), "sqlite")
    if data_type == "int":
        return Integer()
    if data_type == "smallint":
        return SmallInteger()
    if data_type == "tinyint":
        return SmallInteger().with_variant(mssql.TINYINT(), "mssql")
    if data_type == "bit":
        return Boolean()
    if data_type == "float":
        return Float()
    if data_type == "decimal":
        return Numeric()
    if data_type == "nvarchar":
        return Unicode(length) if length else UnicodeText()
    if data_type == "varchar":
        return String(length) if length else Text()
    if data_type == "text":
        return Text()
    if data_type == "datetime":
        return DateTime()
    if data_type == "datetimeoffset":
        return DateTime(timezone=True)
    if data_type == "date":
        return Date()
    if data_type == "uniqueidentifier":
        return Uuid()
    raise ValueError(f"Unsupported data type: {data_type!r}")


def build_table(
    metadata: MetaData,
    table_name: str,
    column_options: ColumnOptions,
    schema: str | None = None,
) -> Table:
    """
    Describe the audit table in ``metadata``.

    Args:
        metadata: MetaData that will own the table.
        table_name: Table name.
        column_options: Finalized column options.
        schema: Schema name, or None for the connection's default schema.
    """
    primary_key = (column_options.primary_key or "").lower()
    id_column = column_options.id if column_options.stores(StandardColumn.ID) else None

    columns = []
    for column in column_options.columns:
        is_primary_key = column.column_name.lower() == primary_key
        columns.append(
            Column(
                column.column_name,
                sql_type(column),
                primary_key=is_primary_key,
                autoincrement=column is id_column and is_primary_key,
                nullable=column.allow_null and not is_primary_key,
                index=column.index or None,
            )
        )
    return Table(table_name, metadata, *columns, schema=schema)


class SqlTableShape:
    """
    A table description held in memory until close() is called.

    Usable as a context manager.
    """

    def __init__(self, metadata: MetaData, table: Table) -> None:
        self._metadata = metadata
        self._table: Table | None = table

    @property
    def table(self) -> Table:
        """Return the described table."""
        if self._table is None:
            raise ValueError("Table shape has been released")
        return self._table

    @property
    def closed(self) -> bool:
        """Return True once the shape has been released."""
        return self._table is None

    def close(self) -> None:
        """Release the in-memory table description. Safe to call more than once."""
        if self._table is not None:
            self._metadata.clear()
            self._table = None

    def __enter__(self) -> SqlTableShape:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()


class SqlTableShapeBuilder:
    """Builds SqlTableShape instances from finalized column options."""

    def build_shape(self, table_name: str, column_options: ColumnOptions) -> SqlTableShape:
        metadata = MetaData()
        table = build_table(metadata, table_name, column_options.finalize())
        return SqlTableShape(metadata, table)
