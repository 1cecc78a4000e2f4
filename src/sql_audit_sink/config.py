"""
Configuration for SqlAuditSink.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

# None selects the connection's default schema (dbo, public, main, ...).
DEFAULT_SCHEMA_NAME: str | None = None


class TableExistsPolicy(str, Enum):
    """What table provisioning does when the destination table already exists."""

    IGNORE = "ignore"
    FAIL = "fail"


@dataclass(frozen=True)
class SinkOptions:
    """
    Options for SqlAuditSink.

    Args:
        table_name: Name of the table that receives one row per event (required).
        schema_name: Schema holding the table. Defaults to the connection's default schema.
        auto_create_table: Create the table when the sink is constructed (default False).
        if_table_exists: Behaviour of auto-creation when the table already exists
            (default TableExistsPolicy.IGNORE).
    """

    table_name: str | None
    schema_name: str | None = DEFAULT_SCHEMA_NAME
    auto_create_table: bool = False
    if_table_exists: TableExistsPolicy = TableExistsPolicy.IGNORE

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> SinkOptions:
        """
        Build options from a configuration mapping such as a parsed JSON or TOML section.

        Recognised keys are ``tableName``, ``schemaName``, ``autoCreateSqlTable`` and
        ``ifTableExists``. Requires the ``jsonschema`` package.

        Raises:
            ValidationError: If the mapping does not match the sink options schema.
        """
        from sql_audit_sink.validation import validate_mapping

        validate_mapping(mapping, "sink_options")
        return cls(
            table_name=mapping["tableName"],
            schema_name=mapping.get("schemaName", DEFAULT_SCHEMA_NAME),
            auto_create_table=mapping.get("autoCreateSqlTable", False),
            if_table_exists=TableExistsPolicy(mapping.get("ifTableExists", "ignore")),
        )
