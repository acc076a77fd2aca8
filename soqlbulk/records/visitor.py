"""JsonColumnVisitor - write one JSON record into a PageBuilder, column by column.

Lookup is by column name. A field that is absent or JSON null is written
as null. Present values are converted to the column type:

    boolean    true/false, "true"/"false"
    long       integers, integral floats, numeric strings
    double     numbers, numeric strings
    string     strings as-is, anything else JSON-encoded
    timestamp  epoch milliseconds (Bulk API JSON dates), or strings parsed
               with the column format, falling back to ISO-8601
    json       value passed through
"""

import json
import re
from datetime import datetime, timezone
from typing import Any

from soqlbulk.errors import RecordConversionError
from soqlbulk.records.page_builder import PageBuilder
from soqlbulk.records.schema import Column

# "+0000" -> "+00:00"
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


class JsonColumnVisitor:
    """Column visitor bound to one JSON object and one page builder."""

    def __init__(self, record: dict[str, Any], page_builder: PageBuilder):
        self.record = record
        self.page_builder = page_builder

    def _value(self, column: Column) -> Any:
        return self.record.get(column.name)

    def _fail(self, column: Column, value: Any, expected: str) -> RecordConversionError:
        return RecordConversionError(
            f"Column {column.name}: cannot convert {value!r} to {expected}",
            column=column.name,
            value=value,
        )

    def boolean_column(self, column: Column) -> None:
        value = self._value(column)
        if value is None:
            self.page_builder.set_null(column)
        elif isinstance(value, bool):
            self.page_builder.set_boolean(column, value)
        elif isinstance(value, str) and value.lower() in ("true", "false"):
            self.page_builder.set_boolean(column, value.lower() == "true")
        else:
            raise self._fail(column, value, "boolean")

    def long_column(self, column: Column) -> None:
        value = self._value(column)
        if value is None:
            self.page_builder.set_null(column)
            return
        if isinstance(value, bool):
            raise self._fail(column, value, "long")
        if isinstance(value, int):
            self.page_builder.set_long(column, value)
        elif isinstance(value, float) and value.is_integer():
            self.page_builder.set_long(column, int(value))
        elif isinstance(value, str):
            try:
                self.page_builder.set_long(column, int(value.strip()))
            except ValueError:
                raise self._fail(column, value, "long")
        else:
            raise self._fail(column, value, "long")

    def double_column(self, column: Column) -> None:
        value = self._value(column)
        if value is None:
            self.page_builder.set_null(column)
            return
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise self._fail(column, value, "double")
        try:
            self.page_builder.set_double(column, float(value))
        except (ValueError, OverflowError):
            raise self._fail(column, value, "double")

    def string_column(self, column: Column) -> None:
        value = self._value(column)
        if value is None:
            self.page_builder.set_null(column)
        elif isinstance(value, str):
            self.page_builder.set_string(column, value)
        else:
            self.page_builder.set_string(column, json.dumps(value))

    def timestamp_column(self, column: Column) -> None:
        value = self._value(column)
        if value is None:
            self.page_builder.set_null(column)
            return
        if isinstance(value, bool):
            raise self._fail(column, value, "timestamp")
        if isinstance(value, (int, float)):
            try:
                parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (ValueError, OverflowError, OSError):
                raise self._fail(column, value, "timestamp")
            self.page_builder.set_timestamp(column, parsed)
        elif isinstance(value, str):
            self.page_builder.set_timestamp(column, self._parse_timestamp(column, value))
        else:
            raise self._fail(column, value, "timestamp")

    def _parse_timestamp(self, column: Column, value: str) -> datetime:
        try:
            if column.format:
                parsed = datetime.strptime(value, column.format)
            else:
                parsed = datetime.fromisoformat(_COMPACT_OFFSET.sub(r"\1:\2", value.replace("Z", "+00:00")))
        except ValueError:
            raise self._fail(column, value, "timestamp")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def json_column(self, column: Column) -> None:
        value = self._value(column)
        if value is None:
            self.page_builder.set_null(column)
        else:
            self.page_builder.set_json(column, value)
