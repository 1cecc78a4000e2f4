"""
Shared fixtures for sql-audit-sink tests.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sql_audit_sink import ColumnOptions, LogEvent, MemoryEventWriter, SinkDependencies


class RecordingShape:
    """Table shape that counts how often it was released."""

    def __init__(self, calls: list[Any]) -> None:
        self._calls = calls
        self.close_count = 0

    def close(self) -> None:
        self.close_count += 1
        self._calls.append("close_shape")


class RecordingShapeBuilder:
    """Table shape builder that records calls and can be told to fail."""

    def __init__(self, calls: list[Any]) -> None:
        self._calls = calls
        self.error: Exception | None = None
        self.shapes: list[RecordingShape] = []

    def build_shape(self, table_name: str, column_options: ColumnOptions) -> RecordingShape:
        self._calls.append(("build_shape", table_name))
        if self.error is not None:
            raise self.error
        shape = RecordingShape(self._calls)
        self.shapes.append(shape)
        return shape


class RecordingTableCreator:
    """Table creator that records calls and can be told to fail."""

    def __init__(self, calls: list[Any]) -> None:
        self._calls = calls
        self.error: Exception | None = None
        self.column_options: ColumnOptions | None = None

    def create_table(
        self,
        schema_name: str | None,
        table_name: str,
        shape: RecordingShape,
        column_options: ColumnOptions,
    ) -> None:
        self._calls.append(("create_table", schema_name, table_name))
        self.column_options = column_options
        if self.error is not None:
            raise self.error


class FailingEventWriter:
    """Event writer whose every write fails with the same exception."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.attempts: list[LogEvent] = []

    def write_event(self, event: LogEvent) -> None:
        self.attempts.append(event)
        raise self.error


def make_event(message_template: str = "User {UserId} signed in", **properties: Any) -> LogEvent:
    """Create a log event with fixed timestamp and level."""
    return LogEvent(
        timestamp=datetime(2026, 2, 17, 12, 0, 0, tzinfo=UTC),
        level=20,
        message_template=message_template,
        properties=properties or {"UserId": 42},
    )


@pytest.fixture
def calls() -> list[Any]:
    """Ordered log of collaborator calls."""
    return []


@pytest.fixture
def memory_writer() -> MemoryEventWriter:
    """Create a fresh in-memory event writer."""
    return MemoryEventWriter()


@pytest.fixture
def shape_builder(calls: list[Any]) -> RecordingShapeBuilder:
    return RecordingShapeBuilder(calls)


@pytest.fixture
def table_creator(calls: list[Any]) -> RecordingTableCreator:
    return RecordingTableCreator(calls)


@pytest.fixture
def dependencies(
    memory_writer: MemoryEventWriter,
    shape_builder: RecordingShapeBuilder,
    table_creator: RecordingTableCreator,
) -> SinkDependencies:
    """Dependency bundle made of recording fakes."""
    return SinkDependencies(
        event_writer=memory_writer,
        table_shape_builder=shape_builder,
        table_creator=table_creator,
    )


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """URL of a file-backed SQLite database."""
    return f"sqlite:///{tmp_path / 'audit.db'}"


@pytest.fixture
def engine(db_url: str) -> Iterator[Engine]:
    """Engine for the test database."""
    engine = create_engine(db_url)
    yield engine
    engine.dispose()
