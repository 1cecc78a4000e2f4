"""
Tests for AuditLogHandler and add_audit_handler.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator

import pytest
from conftest import FailingEventWriter
from sqlalchemy import func, select, table
from sqlalchemy.engine import Engine

from sql_audit_sink import (
    AuditLogHandler,
    ConfigurationError,
    LogEvent,
    MemoryEventWriter,
    SinkDependencies,
    SinkOptions,
    SqlAuditSink,
    add_audit_handler,
)


class DisposeCountingSink:
    def __init__(self) -> None:
        self.events: list[LogEvent] = []
        self.dispose_count = 0

    def emit(self, event: LogEvent) -> None:
        self.events.append(event)

    def dispose(self) -> None:
        self.dispose_count += 1


@pytest.fixture
def audit_logger() -> Iterator[logging.Logger]:
    """A private logger that does not propagate, cleaned up afterwards."""
    logger = logging.getLogger(f"audit.test.{uuid.uuid4().hex}")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


def make_sink(writer: object) -> SqlAuditSink:
    return SqlAuditSink(
        SinkOptions(table_name="Logs"),
        None,
        SinkDependencies(event_writer=writer),  # type: ignore[arg-type]
    )


class TestAuditLogHandler:
    def test_one_event_per_record(
        self, audit_logger: logging.Logger, memory_writer: MemoryEventWriter
    ) -> None:
        audit_logger.addHandler(AuditLogHandler(make_sink(memory_writer)))

        audit_logger.info("Record %s opened", "pat_1", extra={"actor": "svc_etl"})

        assert len(memory_writer) == 1
        event = memory_writer.events[0]
        assert event.level == logging.INFO
        assert event.render_message() == "Record pat_1 opened"
        assert event.properties["actor"] == "svc_etl"
        assert event.properties["SourceContext"] == audit_logger.name

    def test_write_failure_raised_at_call_site(self, audit_logger: logging.Logger) -> None:
        error = ConnectionError("database unavailable")
        audit_logger.addHandler(AuditLogHandler(make_sink(FailingEventWriter(error))))

        with pytest.raises(ConnectionError) as excinfo:
            audit_logger.info("Record deleted")

        assert excinfo.value is error

    def test_records_below_level_not_written(
        self, audit_logger: logging.Logger, memory_writer: MemoryEventWriter
    ) -> None:
        audit_logger.addHandler(AuditLogHandler(make_sink(memory_writer), level=logging.WARNING))

        audit_logger.info("Ignored")
        audit_logger.warning("Kept")

        assert [e.render_message() for e in memory_writer.events] == ["Kept"]

    def test_exception_captured(
        self, audit_logger: logging.Logger, memory_writer: MemoryEventWriter
    ) -> None:
        audit_logger.addHandler(AuditLogHandler(make_sink(memory_writer)))

        try:
            raise PermissionError("denied")
        except PermissionError:
            audit_logger.exception("Access failed")

        event = memory_writer.events[0]
        assert event.level == logging.ERROR
        assert "PermissionError: denied" in (event.exception or "")

    def test_close_disposes_sink(self) -> None:
        sink = DisposeCountingSink()
        handler = AuditLogHandler(sink)

        handler.close()
        handler.close()

        assert sink.dispose_count == 2

    def test_sink_property(self) -> None:
        sink = DisposeCountingSink()
        assert AuditLogHandler(sink).sink is sink


class TestAddAuditHandler:
    def test_attaches_and_writes_rows(
        self, audit_logger: logging.Logger, engine: Engine
    ) -> None:
        handler = add_audit_handler(
            audit_logger, engine, SinkOptions(table_name="Logs", auto_create_table=True)
        )

        audit_logger.info("Exported %d rows", 12)
        audit_logger.warning("Export slow")

        assert handler in audit_logger.handlers
        with engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(table("Logs"))).scalar_one()
        assert count == 2

    def test_accepts_logger_name(self, engine: Engine) -> None:
        name = f"audit.test.{uuid.uuid4().hex}"
        handler = add_audit_handler(name, engine, SinkOptions(table_name="Logs"))
        logger = logging.getLogger(name)
        try:
            assert handler in logger.handlers
        finally:
            logger.removeHandler(handler)

    def test_failed_construction_attaches_nothing(
        self, audit_logger: logging.Logger, engine: Engine
    ) -> None:
        with pytest.raises(ConfigurationError):
            add_audit_handler(audit_logger, engine, SinkOptions(table_name=""))

        assert audit_logger.handlers == []
