"""
Collaborator contracts used by the audit sink.

The sink only consumes these narrow capabilities; how they are produced is
the business of create_sink_dependencies() (or of a test).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sql_audit_sink.columns import ColumnOptions
from sql_audit_sink.config import SinkOptions
from sql_audit_sink.events import FormatProvider, LogEvent, LogEventFormatter

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

_log = logging.getLogger(__name__)


@runtime_checkable
class EventWriter(Protocol):
    """Writes exactly one event per call, synchronously."""

    def write_event(self, event: LogEvent) -> None:
        """
        Persist one event.

        Must not return before the event is committed, and must raise on failure.
        """
        ...


@runtime_checkable
class TableShape(Protocol):
    """In-memory description of the table columns. Must be released with close()."""

    def close(self) -> None: ...


@runtime_checkable
class TableShapeBuilder(Protocol):
    """Builds the in-memory table shape from finalized column options."""

    def build_shape(self, table_name: str, column_options: ColumnOptions) -> TableShape: ...


@runtime_checkable
class TableCreator(Protocol):
    """Creates the physical table described by a table shape."""

    def create_table(
        self,
        schema_name: str | None,
        table_name: str,
        shape: TableShape,
        column_options: ColumnOptions,
    ) -> None: ...


@dataclass(frozen=True)
class SinkDependencies:
    """
    Collaborators resolved for one sink.

    Args:
        event_writer: Writes events (required).
        table_shape_builder: Builds the table shape (required for auto-creation).
        table_creator: Creates the table (required for auto-creation).
    """

    event_writer: EventWriter | None
    table_shape_builder: TableShapeBuilder | None = None
    table_creator: TableCreator | None = None


def create_sink_dependencies(
    connection: str | Engine,
    sink_options: SinkOptions,
    format_provider: FormatProvider | None = None,
    column_options: ColumnOptions | None = None,
    log_event_formatter: LogEventFormatter | None = None,
) -> SinkDependencies:
    """
    Resolve the SQL collaborators for a connection.

    Args:
        connection: SQLAlchemy database URL or an existing Engine. An Engine is
            shared and never disposed here; an engine created from a URL is owned
            by the event writer and disposed by its close(). Pass an Engine to
            control the connection pool lifecycle yourself.
        sink_options: Table, schema and table-exists policy.
        format_provider: Optional callable used to render property values in messages.
        column_options: Column options; the defaults when None.
        log_event_formatter: Custom formatter for the LogEvent column.

    Returns:
        A bundle holding a SqlLogEventWriter, a SqlTableShapeBuilder and a SqlTableCreator.
    """
    from sqlalchemy import create_engine
    from sqlalchemy.engine import Engine

    from sql_audit_sink.sql import SqlLogEventWriter, SqlTableCreator, SqlTableShapeBuilder

    owns_engine = not isinstance(connection, Engine)
    engine = create_engine(connection) if owns_engine else connection
    _log.debug("Resolved audit sink dependencies for %s", engine.url.render_as_string())

    try:
        writer = SqlLogEventWriter(
            engine,
            sink_options,
            column_options if column_options is not None else ColumnOptions(),
            format_provider=format_provider,
            log_event_formatter=log_event_formatter,
            owns_engine=owns_engine,
        )
    except BaseException:
        if owns_engine:
            engine.dispose()
        raise

    return SinkDependencies(
        event_writer=writer,
        table_shape_builder=SqlTableShapeBuilder(),
        table_creator=SqlTableCreator(engine, if_exists=sink_options.if_table_exists),
    )
