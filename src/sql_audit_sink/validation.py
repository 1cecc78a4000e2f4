"""
Configuration validation.

Provides the construction-time checks the audit sink applies to its options,
and optional JSON schema validation of configuration mappings (requires the
[jsonschema] extra).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sql_audit_sink.columns import ColumnOptions
from sql_audit_sink.config import SinkOptions
from sql_audit_sink.errors import ConfigurationError


class ValidationError(ConfigurationError):
    """Raised when a configuration mapping fails schema validation."""


def validate_sink_options(sink_options: SinkOptions | None) -> str:
    """
    Check that sink options name a destination table.

    Args:
        sink_options: The options to check. None is treated as missing a table name.

    Returns:
        The table name.

    Raises:
        ConfigurationError: If the table name is absent or empty.
    """
    table_name = getattr(sink_options, "table_name", None)
    if not table_name:
        raise ConfigurationError("Table name must be specified")
    return table_name


def finalize_audit_columns(column_options: ColumnOptions | None) -> ColumnOptions:
    """
    Finalize column options and check they are usable for auditing.

    The check runs on the finalized values. Triggers must run with every audit
    write, so disabling them is rejected.

    Args:
        column_options: Column options, or None for the defaults.

    Returns:
        The finalized column options.

    Raises:
        ConfigurationError: If the options are inconsistent or disable triggers.
    """
    column_options = column_options if column_options is not None else ColumnOptions()
    column_options.finalize()
    if column_options.disable_triggers:
        raise ConfigurationError("The disable_triggers option is not supported for auditing")
    return column_options


def validate_mapping(mapping: Mapping[str, Any], schema_name: str) -> None:
    """
    Validate a configuration mapping against one of the vendored JSON schemas.

    Requires the ``jsonschema`` package (install with ``pip install sql-audit-sink[jsonschema]``).

    Args:
        mapping: The configuration mapping.
        schema_name: "sink_options" or "column_options".

    Raises:
        ValidationError: If the mapping fails validation.
        ImportError: If the jsonschema package is not installed.
    """
    try:
        import jsonschema
    except ImportError:
        raise ImportError(
            "jsonschema is required to validate configuration mappings. "
            "Install with: pip install sql-audit-sink[jsonschema]"
        ) from None

    from sql_audit_sink.schema import load_schema

    schema = load_schema(schema_name)
    try:
        jsonschema.validate(instance=dict(mapping), schema=schema)
    except jsonschema.ValidationError as exc:
        raise ValidationError(str(exc.message)) from exc
