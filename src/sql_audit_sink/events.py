"""
Log events written by the audit sink.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

FormatProvider = Callable[[Any], str]
LogEventFormatter = Callable[["LogEvent"], str]

# {Name}, {@Name}, {$Name} and {Name:format}; {{ and }} are literal braces
_HOLE = re.compile(r"\{\{|\}\}|\{([@$]?)([A-Za-z_][A-Za-z0-9_.]*)(?::([^{}]*))?\}")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}

_exception_formatter = logging.Formatter()


@dataclass(frozen=True)
class LogEvent:
    """
    One structured log event.

    Args:
        timestamp: When the event happened (timezone-aware).
        level: Numeric level using the standard logging levels.
        message_template: Message template with ``{name}`` holes.
        properties: Structured values, including those the template refers to.
        exception: Formatted exception text, if the event carries one.
        rendered_message: Pre-rendered message. When unset, the template is rendered
            from the properties.
    """

    timestamp: datetime
    level: int
    message_template: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    exception: str | None = None
    rendered_message: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def level_name(self) -> str:
        """Return the level name, e.g. "INFO"."""
        return logging.getLevelName(self.level)

    def render_message(self, format_provider: FormatProvider | None = None) -> str:
        """
        Render the message text.

        Holes naming a known property are replaced by the property value; a hole
        with a format spec (``{amount:.2f}``) is formatted with it, or rendered
        without the spec when the value does not support it. Holes naming unknown
        properties are left as they are, and ``{{`` / ``}}`` render as literal braces.

        Args:
            format_provider: Optional callable turning a property value into text.
        """
        if self.rendered_message is not None:
            return self.rendered_message

        def substitute(match: re.Match[str]) -> str:
            text = match.group(0)
            if text in ("{{", "}}"):
                return text[0]
            name, spec = match.group(2), match.group(3)
            if name not in self.properties:
                return text
            value = self.properties[name]
            if spec:
                try:
                    return format(value, spec)
                except (ValueError, TypeError):
                    pass
            if format_provider is not None:
                return format_provider(value)
            return str(value)

        return _HOLE.sub(substitute, self.message_template)

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> LogEvent:
        """
        Convert a standard library LogRecord.

        Fields passed through ``extra`` become properties, and the logger name is
        recorded as the ``SourceContext`` property. A mapping passed as the sole
        message argument also contributes its items as properties.
        """
        properties: dict[str, Any] = {"SourceContext": record.name}
        if isinstance(record.args, Mapping):
            properties.update(record.args)
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                properties[key] = value

        exception = None
        if record.exc_info:
            exception = _exception_formatter.formatException(record.exc_info)
        elif record.exc_text:
            exception = record.exc_text

        return cls(
            timestamp=datetime.fromtimestamp(record.created, UTC),
            level=record.levelno,
            message_template=str(record.msg),
            properties=properties,
            exception=exception,
            rendered_message=record.getMessage(),
        )


def to_json_value(value: Any) -> Any:
    """Convert a property value into something json.dumps accepts."""
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def json_log_event_formatter(
    event: LogEvent,
    *,
    format_provider: FormatProvider | None = None,
    exclude_properties: frozenset[str] = frozenset(),
    exclude_standard_columns: bool = False,
) -> str:
    """
    Default formatter for the LogEvent column: one compact JSON document.

    Args:
        event: The event to format.
        format_provider: Passed to render_message().
        exclude_properties: Property names to leave out.
        exclude_standard_columns: Write only the properties, without timestamp,
            level, message, template and exception.
    """
    properties = {
        name: to_json_value(value)
        for name, value in event.properties.items()
        if name not in exclude_properties
    }
    document: dict[str, Any] = {}
    if not exclude_standard_columns:
        document["TimeStamp"] = event.timestamp.isoformat()
        document["Level"] = event.level_name
        document["Message"] = event.render_message(format_provider)
        document["MessageTemplate"] = event.message_template
        if event.exception is not None:
            document["Exception"] = event.exception
    document["Properties"] = properties
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)
