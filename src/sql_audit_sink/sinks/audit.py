"""
Audit sink writing log events as table rows.

Every event is committed synchronously, one row per call, and any failure is
raised at the call site. There is no queue, no background worker, no batching
and no retry.
"""

from __future__ import annotations

import logging
from contextlib import closing
from typing import TYPE_CHECKING, Any

from sql_audit_sink.columns import ColumnOptions
from sql_audit_sink.config import DEFAULT_SCHEMA_NAME, SinkOptions
from sql_audit_sink.dependencies import EventWriter, SinkDependencies, create_sink_dependencies
from sql_audit_sink.errors import ConfigurationError
from sql_audit_sink.events import FormatProvider, LogEvent, LogEventFormatter
from sql_audit_sink.validation import finalize_audit_columns, validate_sink_options

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_log = logging.getLogger(__name__)


class SqlAuditSink:
    """
    Writes log events as rows of a database table with audit semantics.

    emit() returns only after the row is committed; if the write fails, the
    writer's exception propagates unchanged so the application can react to it.

    Most code should use from_options(). The constructor takes already-resolved
    collaborators and is the single place where configuration is checked.

    Args:
        sink_options: Table name, schema name and auto-creation settings.
        column_options: Column options, or None for the defaults. Finalized here.
        dependencies: Event writer and, for auto-creation, table shape builder
            and table creator.

    Raises:
        ConfigurationError: If the table name is missing, triggers are disabled,
            or a required collaborator is missing.

    Example::

        from sql_audit_sink import SinkOptions, SqlAuditSink

        sink = SqlAuditSink.from_options(
            "sqlite:///audit.db",
            SinkOptions(table_name="Logs", auto_create_table=True),
        )
        sink.emit(event)
    """

    def __init__(
        self,
        sink_options: SinkOptions,
        column_options: ColumnOptions | None,
        dependencies: SinkDependencies | None,
    ) -> None:
        validate_sink_options(sink_options)
        self._sink_options = sink_options
        self._column_options = finalize_audit_columns(column_options)

        if dependencies is None:
            raise ConfigurationError("Sink dependencies must be provided")
        if dependencies.event_writer is None:
            raise ConfigurationError("Event writer is not initialized")
        self._writer: EventWriter = dependencies.event_writer

        if sink_options.auto_create_table:
            self._create_table(dependencies)

    @classmethod
    def from_options(
        cls,
        connection: str | Engine,
        sink_options: SinkOptions,
        format_provider: FormatProvider | None = None,
        column_options: ColumnOptions | None = None,
        log_event_formatter: LogEventFormatter | None = None,
    ) -> SqlAuditSink:
        """
        Construct a sink writing to a database.

        An engine created from a URL belongs to the event writer and is disposed
        if construction fails; pass an Engine to manage the pool yourself.

        Args:
            connection: SQLAlchemy database URL or an existing Engine.
            sink_options: Table name, schema name and auto-creation settings.
            format_provider: Optional callable used to render property values in messages.
            column_options: Column options, or None for the defaults.
            log_event_formatter: Custom formatter for the LogEvent column.
        """
        # Checked before any collaborator is created.
        validate_sink_options(sink_options)
        column_options = column_options if column_options is not None else ColumnOptions()
        dependencies = create_sink_dependencies(
            connection, sink_options, format_provider, column_options, log_event_formatter
        )
        try:
            return cls(sink_options, column_options, dependencies)
        except BaseException:
            # release an engine the factory created for this sink
            close = getattr(dependencies.event_writer, "close", None)
            if close is not None:
                close()
            raise

    @classmethod
    def from_legacy(
        cls,
        connection: str | Engine,
        table_name: str,
        format_provider: FormatProvider | None = None,
        auto_create_table: bool = False,
        column_options: ColumnOptions | None = None,
        schema_name: str | None = DEFAULT_SCHEMA_NAME,
        log_event_formatter: LogEventFormatter | None = None,
    ) -> SqlAuditSink:
        """
        Construct a sink from discrete parameters.

        Kept for compatibility; new settings are only added to SinkOptions, so
        prefer from_options().
        """
        sink_options = SinkOptions(
            table_name=table_name,
            schema_name=schema_name,
            auto_create_table=auto_create_table,
        )
        return cls.from_options(
            connection, sink_options, format_provider, column_options, log_event_formatter
        )

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def _create_table(self, dependencies: SinkDependencies) -> None:
        """Build the table shape, create the table, and release the shape on every path."""
        if dependencies.table_shape_builder is None:
            raise ConfigurationError("Table shape builder is not initialized")
        if dependencies.table_creator is None:
            raise ConfigurationError("Table creator is not initialized")

        options = self._sink_options
        _log.debug("Provisioning audit table %s", options.table_name)
        shape = dependencies.table_shape_builder.build_shape(
            options.table_name, self._column_options
        )
        with closing(shape):
            dependencies.table_creator.create_table(
                options.schema_name, options.table_name, shape, self._column_options
            )

    # ------------------------------------------------------------------
    # Sink interface
    # ------------------------------------------------------------------

    @property
    def sink_options(self) -> SinkOptions:
        """Return the sink options."""
        return self._sink_options

    @property
    def column_options(self) -> ColumnOptions:
        """Return the finalized column options."""
        return self._column_options

    def emit(self, event: LogEvent) -> None:
        """
        Write one event and return once it is committed.

        Args:
            event: The log event to write.

        Raises:
            Exception: Whatever the event writer raised, unchanged.
        """
        self._writer.write_event(event)

    def dispose(self) -> None:
        """
        Does nothing: the sink owns no resources of its own.

        The connection belongs to the event writer. Safe to call any number of times.
        """

    def close(self) -> None:
        """Alias for dispose()."""
        self.dispose()

    def __enter__(self) -> SqlAuditSink:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit - dispose the sink."""
        self.dispose()
