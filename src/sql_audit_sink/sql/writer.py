"""
Synchronous single-row event writer.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC
from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.engine import Engine

from sql_audit_sink.columns import ColumnOptions, SqlColumn, StandardColumn
from sql_audit_sink.config import SinkOptions
from sql_audit_sink.events import (
    FormatProvider,
    LogEvent,
    LogEventFormatter,
    json_log_event_formatter,
    to_json_value,
)
from sql_audit_sink.sql.shape import build_table
from sql_audit_sink.validation import validate_sink_options

_TEXT_TYPES = frozenset({"nvarchar", "varchar", "text"})


class SqlLogEventWriter:
    """
    Writes one event per call as one row, committed in its own transaction.

    Nothing is buffered or retried: write_event() returns once the row is
    committed and raises whatever the database or driver raised otherwise.

    Args:
        engine: Engine for the destination database.
        sink_options: Table and schema to write to.
        column_options: Column options (finalized by the writer).
        format_provider: Optional callable used to render property values in messages.
        log_event_formatter: Custom formatter for the LogEvent column.
        owns_engine: Dispose the engine in close() (default False). Set when the
            engine was created for this writer alone.
    """

    def __init__(
        self,
        engine: Engine,
        sink_options: SinkOptions,
        column_options: ColumnOptions,
        *,
        format_provider: FormatProvider | None = None,
        log_event_formatter: LogEventFormatter | None = None,
        owns_engine: bool = False,
    ) -> None:
        table_name = validate_sink_options(sink_options)
        self._engine = engine
        self._owns_engine = owns_engine
        self._columns = column_options.finalize()
        self._format_provider = format_provider
        self._log_event_formatter = log_event_formatter
        self._table = build_table(
            MetaData(), table_name, self._columns, schema=sink_options.schema_name
        )
        self._additional_properties = frozenset(
            c.resolved_property_name for c in self._columns.additional_columns
        )

    @property
    def engine(self) -> Engine:
        """Return the engine rows are written through."""
        return self._engine

    def close(self) -> None:
        """Dispose the engine's connection pool if this writer owns the engine."""
        if self._owns_engine:
            self._engine.dispose()

    def write_event(self, event: LogEvent) -> None:
        """
        Insert and commit one row for ``event``.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If the row could not be committed.
        """
        row = self.map_event(event)
        with self._engine.begin() as conn:
            conn.execute(self._table.insert().values(row))

    def map_event(self, event: LogEvent) -> dict[str, Any]:
        """Return the column values for ``event``, keyed by column name."""
        options = self._columns
        row: dict[str, Any] = {}

        for standard in options.store:
            if standard is StandardColumn.ID:
                continue
            column = options.standard_column(standard)
            row[column.column_name] = self._standard_value(standard, event)

        for column in options.additional_columns:
            value = event.properties.get(column.resolved_property_name)
            row[column.column_name] = _column_value(column, value)

        return row

    def _standard_value(self, standard: StandardColumn, event: LogEvent) -> Any:
        options = self._columns
        if standard is StandardColumn.MESSAGE:
            return event.render_message(self._format_provider)
        if standard is StandardColumn.MESSAGE_TEMPLATE:
            return event.message_template
        if standard is StandardColumn.LEVEL:
            return event.level if options.level.store_as_enum else event.level_name
        if standard is StandardColumn.TIME_STAMP:
            timestamp = event.timestamp
            if options.time_stamp.convert_to_utc:
                timestamp = timestamp.astimezone(UTC)
            if options.time_stamp.data_type == "datetime":
                # naive column: keep wall-clock time, drop the offset
                timestamp = timestamp.replace(tzinfo=None)
            return timestamp
        if standard is StandardColumn.EXCEPTION:
            return event.exception
        if standard is StandardColumn.PROPERTIES:
            excluded = (
                self._additional_properties
                if options.properties.exclude_additional_properties
                else frozenset()
            )
            properties = {
                name: to_json_value(value)
                for name, value in event.properties.items()
                if name not in excluded
            }
            return json.dumps(properties, separators=(",", ":"), ensure_ascii=False)
        if standard is StandardColumn.LOG_EVENT:
            if self._log_event_formatter is not None:
                return self._log_event_formatter(event)
            return json_log_event_formatter(
                event,
                format_provider=self._format_provider,
                exclude_properties=(
                    self._additional_properties
                    if options.log_event.exclude_additional_properties
                    else frozenset()
                ),
                exclude_standard_columns=options.log_event.exclude_standard_columns,
            )
        raise ValueError(f"Unhandled standard column: {standard!r}")


def _column_value(column: SqlColumn, value: Any) -> Any:
    """Coerce a property value for an additional column."""
    if value is None:
        return None
    if column.data_type in _TEXT_TYPES and not isinstance(value, str):
        if isinstance(value, (Mapping, list, tuple)):
            return json.dumps(to_json_value(value), separators=(",", ":"), ensure_ascii=False)
        return str(value)
    return value
