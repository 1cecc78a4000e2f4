"""
Column configuration for the audit table.

ColumnOptions may be changed freely until finalize() is called. Finalization
resolves defaults, checks that the configuration is internally consistent and
then locks it (and every column it holds) against further changes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sql_audit_sink.errors import ConfigurationError


class StandardColumn(str, Enum):
    """Columns whose values are taken from the log event itself."""

    ID = "Id"
    MESSAGE = "Message"
    MESSAGE_TEMPLATE = "MessageTemplate"
    LEVEL = "Level"
    TIME_STAMP = "TimeStamp"
    EXCEPTION = "Exception"
    PROPERTIES = "Properties"
    LOG_EVENT = "LogEvent"


SQL_DATA_TYPES = frozenset(
    {
        "bigint",
        "int",
        "smallint",
        "tinyint",
        "bit",
        "float",
        "decimal",
        "nvarchar",
        "varchar",
        "text",
        "datetime",
        "datetimeoffset",
        "date",
        "uniqueidentifier",
    }
)

DEFAULT_STORE: tuple[StandardColumn, ...] = (
    StandardColumn.ID,
    StandardColumn.MESSAGE,
    StandardColumn.MESSAGE_TEMPLATE,
    StandardColumn.LEVEL,
    StandardColumn.TIME_STAMP,
    StandardColumn.EXCEPTION,
    StandardColumn.PROPERTIES,
)

# Configuration mapping keys -> column attribute names
_COLUMN_SETTINGS = {
    "columnName": "column_name",
    "dataType": "data_type",
    "allowNull": "allow_null",
    "dataLength": "data_length",
    "propertyName": "property_name",
    "index": "index",
    "storeAsEnum": "store_as_enum",
    "convertToUtc": "convert_to_utc",
    "excludeAdditionalProperties": "exclude_additional_properties",
    "excludeStandardColumns": "exclude_standard_columns",
}

_STANDARD_SECTIONS = {
    "id": StandardColumn.ID,
    "message": StandardColumn.MESSAGE,
    "messageTemplate": StandardColumn.MESSAGE_TEMPLATE,
    "level": StandardColumn.LEVEL,
    "timeStamp": StandardColumn.TIME_STAMP,
    "exception": StandardColumn.EXCEPTION,
    "properties": StandardColumn.PROPERTIES,
    "logEvent": StandardColumn.LOG_EVENT,
}


class _Lockable:
    """Mixin rejecting attribute assignment once the object is finalized."""

    _finalized = False

    def __setattr__(self, name: str, value: Any) -> None:
        if self._finalized:
            raise ConfigurationError(
                f"{type(self).__name__} is finalized and can no longer be changed"
            )
        object.__setattr__(self, name, value)

    def _lock(self) -> None:
        object.__setattr__(self, "_finalized", True)

    @property
    def is_finalized(self) -> bool:
        """Return True once finalize() has run."""
        return self._finalized


@dataclass(eq=False)
class SqlColumn(_Lockable):
    """
    A single table column.

    Args:
        column_name: Name of the column in the table.
        data_type: SQL type name, one of SQL_DATA_TYPES (default "nvarchar").
        allow_null: Whether the column accepts NULL (default True).
        data_length: Maximum length for character columns; -1 means unbounded.
        property_name: Event property written to the column. Defaults to column_name.
        index: Create a non-unique index on the column (default False).
    """

    column_name: str | None = None
    data_type: str = "nvarchar"
    allow_null: bool = True
    data_length: int = -1
    property_name: str | None = None
    index: bool = False

    @property
    def resolved_property_name(self) -> str | None:
        """Return the event property this column reads from."""
        return self.property_name or self.column_name

    def _resolve(self) -> None:
        if not self.column_name:
            raise ConfigurationError(f"{type(self).__name__} requires a column name")
        data_type = (self.data_type or "").lower()
        if data_type not in SQL_DATA_TYPES:
            raise ConfigurationError(
                f"Column {self.column_name!r} has unsupported data type {self.data_type!r}"
            )
        if self.data_length < -1 or self.data_length == 0:
            raise ConfigurationError(
                f"Column {self.column_name!r} has invalid data length {self.data_length}"
            )
        object.__setattr__(self, "data_type", data_type)


@dataclass(eq=False)
class IdColumn(SqlColumn):
    """Auto-incrementing row identifier."""

    column_name: str | None = StandardColumn.ID.value
    data_type: str = "int"
    allow_null: bool = False

    def _resolve(self) -> None:
        if (self.data_type or "").lower() not in ("int", "bigint"):
            raise ConfigurationError("The Id column must be of type int or bigint")
        super()._resolve()


@dataclass(eq=False)
class MessageColumn(SqlColumn):
    """Rendered message text."""

    column_name: str | None = StandardColumn.MESSAGE.value


@dataclass(eq=False)
class MessageTemplateColumn(SqlColumn):
    """Unrendered message template."""

    column_name: str | None = StandardColumn.MESSAGE_TEMPLATE.value


@dataclass(eq=False)
class LevelColumn(SqlColumn):
    """
    Event level, stored as its name or (with store_as_enum) as its numeric value.
    """

    column_name: str | None = StandardColumn.LEVEL.value
    data_length: int = 128
    store_as_enum: bool = False

    def _resolve(self) -> None:
        if self.store_as_enum and (self.data_type or "").lower() in ("nvarchar", "varchar"):
            object.__setattr__(self, "data_type", "tinyint")
        super()._resolve()


@dataclass(eq=False)
class TimeStampColumn(SqlColumn):
    """Event timestamp; datetimeoffset keeps the UTC offset, datetime drops it."""

    column_name: str | None = StandardColumn.TIME_STAMP.value
    data_type: str = "datetime"
    allow_null: bool = False
    convert_to_utc: bool = False

    def _resolve(self) -> None:
        if (self.data_type or "").lower() not in ("datetime", "datetimeoffset"):
            raise ConfigurationError(
                "The TimeStamp column must be of type datetime or datetimeoffset"
            )
        super()._resolve()


@dataclass(eq=False)
class ExceptionColumn(SqlColumn):
    """Formatted exception text, if any."""

    column_name: str | None = StandardColumn.EXCEPTION.value


@dataclass(eq=False)
class PropertiesColumn(SqlColumn):
    """Event properties serialized as JSON."""

    column_name: str | None = StandardColumn.PROPERTIES.value
    exclude_additional_properties: bool = False


@dataclass(eq=False)
class LogEventColumn(SqlColumn):
    """The whole event serialized by the log event formatter."""

    column_name: str | None = StandardColumn.LOG_EVENT.value
    exclude_additional_properties: bool = False
    exclude_standard_columns: bool = False


class ColumnOptions(_Lockable):
    """
    Describes the columns of the audit table and how event data maps onto them.

    Args:
        store: Standard columns to store, in table order (default DEFAULT_STORE).
        additional_columns: Extra columns filled from event properties.
        primary_key: Name of the primary key column. Defaults to the Id column
            when it is stored. Naming any other column requires Id to be removed
            from store.
        disable_triggers: Disable table triggers while writing. Not supported by
            the audit sink.

    Each standard column is configured through its attribute (``id``, ``message``,
    ``message_template``, ``level``, ``time_stamp``, ``exception``, ``properties``,
    ``log_event``), for example ``options.level.store_as_enum = True``.
    """

    def __init__(
        self,
        *,
        store: Iterable[StandardColumn | str] | None = None,
        additional_columns: Iterable[SqlColumn] | None = None,
        primary_key: str | None = None,
        disable_triggers: bool = False,
    ) -> None:
        self.store = list(store) if store is not None else list(DEFAULT_STORE)
        self.additional_columns = list(additional_columns or [])
        self.primary_key = primary_key
        self.disable_triggers = disable_triggers
        self.id = IdColumn()
        self.message = MessageColumn()
        self.message_template = MessageTemplateColumn()
        self.level = LevelColumn()
        self.time_stamp = TimeStampColumn()
        self.exception = ExceptionColumn()
        self.properties = PropertiesColumn()
        self.log_event = LogEventColumn()

    def standard_column(self, column: StandardColumn | str) -> SqlColumn:
        """Return the settings object for a standard column."""
        return {
            StandardColumn.ID: self.id,
            StandardColumn.MESSAGE: self.message,
            StandardColumn.MESSAGE_TEMPLATE: self.message_template,
            StandardColumn.LEVEL: self.level,
            StandardColumn.TIME_STAMP: self.time_stamp,
            StandardColumn.EXCEPTION: self.exception,
            StandardColumn.PROPERTIES: self.properties,
            StandardColumn.LOG_EVENT: self.log_event,
        }[StandardColumn(column)]

    def stores(self, column: StandardColumn | str) -> bool:
        """Return True if the standard column is part of the table."""
        return StandardColumn(column) in self.store

    @property
    def columns(self) -> tuple[SqlColumn, ...]:
        """Stored standard columns followed by additional columns, in table order."""
        standard = tuple(self.standard_column(c) for c in self.store)
        return standard + tuple(self.additional_columns)

    def finalize(self) -> ColumnOptions:
        """
        Resolve defaults, check consistency and lock the configuration.

        Calling finalize() again on a finalized instance does nothing.

        Returns:
            This instance, for chaining.

        Raises:
            ConfigurationError: If the configuration is inconsistent.
        """
        if self.is_finalized:
            return self

        try:
            store = tuple(dict.fromkeys(StandardColumn(c) for c in self.store))
        except ValueError as exc:
            raise ConfigurationError(f"Unknown standard column in store: {exc}") from None
        additional = tuple(self.additional_columns)
        for column in additional:
            if not isinstance(column, SqlColumn):
                raise ConfigurationError(
                    f"Additional columns must be SqlColumn instances, got {type(column).__name__}"
                )

        columns = tuple(self.standard_column(c) for c in store) + additional
        for column in columns:
            column._resolve()

        seen: set[str] = set()
        for column in columns:
            key = column.column_name.lower()
            if key in seen:
                raise ConfigurationError(f"Duplicate column name: {column.column_name!r}")
            seen.add(key)

        primary_key = self.primary_key
        if primary_key is None:
            if StandardColumn.ID in store:
                primary_key = self.id.column_name
        elif primary_key.lower() not in seen:
            raise ConfigurationError(
                f"Primary key column {primary_key!r} is not one of the configured columns"
            )
        elif StandardColumn.ID in store and primary_key.lower() != self.id.column_name.lower():
            # Id is only generated by the database when it is the primary key
            raise ConfigurationError(
                f"Primary key column {primary_key!r} requires the Id column to be removed from store"
            )
        object.__setattr__(self, "store", store)
        object.__setattr__(self, "additional_columns", additional)
        object.__setattr__(self, "primary_key", primary_key)

        for column in (self.standard_column(c) for c in StandardColumn):
            column._lock()
        for column in additional:
            column._lock()
        self._lock()
        return self

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> ColumnOptions:
        """
        Build column options from a configuration mapping.

        Standard column sections use camelCase keys (``timeStamp``, ``logEvent``);
        ``store``, ``addStandardColumns`` and ``removeStandardColumns`` select the
        standard columns. Requires the ``jsonschema`` package.

        Raises:
            ValidationError: If the mapping does not match the column options schema.
            ConfigurationError: If a setting does not apply to its column.
        """
        from sql_audit_sink.validation import validate_mapping

        validate_mapping(mapping, "column_options")

        options = cls(
            store=mapping.get("store"),
            primary_key=mapping.get("primaryKeyColumnName"),
            disable_triggers=mapping.get("disableTriggers", False),
        )
        for name in mapping.get("addStandardColumns", ()):
            if StandardColumn(name) not in options.store:
                options.store.append(StandardColumn(name))
        for name in mapping.get("removeStandardColumns", ()):
            options.store = [c for c in options.store if StandardColumn(c) != StandardColumn(name)]

        for section, standard in _STANDARD_SECTIONS.items():
            if section in mapping:
                _apply_column_settings(options.standard_column(standard), mapping[section])

        for section in mapping.get("additionalColumns", ()):
            column = SqlColumn()
            _apply_column_settings(column, section)
            options.additional_columns.append(column)

        return options


def _apply_column_settings(column: SqlColumn, section: Mapping[str, Any]) -> None:
    """Copy camelCase settings from a configuration section onto a column."""
    for key, value in section.items():
        attr = _COLUMN_SETTINGS.get(key)
        if attr is None or not hasattr(column, attr):
            raise ConfigurationError(
                f"Setting {key!r} does not apply to {type(column).__name__}"
            )
        setattr(column, attr, value)
