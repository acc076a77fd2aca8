"""Columnar output sink for emitted records.

PageBuilder is the write side of the column-visitor protocol: visitors set
one value per column, then the emitter calls add_record() to commit the row.
ColumnarPageBuilder keeps one list per column.
"""

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from soqlbulk.records.schema import Column, Schema


@runtime_checkable
class PageBuilder(Protocol):
    """Protocol for record sinks written column by column."""

    def set_null(self, column: Column) -> None: ...

    def set_boolean(self, column: Column, value: bool) -> None: ...

    def set_long(self, column: Column, value: int) -> None: ...

    def set_double(self, column: Column, value: float) -> None: ...

    def set_string(self, column: Column, value: str) -> None: ...

    def set_timestamp(self, column: Column, value: datetime) -> None: ...

    def set_json(self, column: Column, value: Any) -> None: ...

    def add_record(self) -> None: ...


class ColumnarPageBuilder:
    """In-memory columnar page builder.

    Columns not set for a record are committed as None.

    Example:
        >>> builder = ColumnarPageBuilder(schema)
        >>> builder.set_string(schema.columns[0], "001A")
        >>> builder.add_record()
        >>> builder.columns()
        {'Id': ['001A'], 'Name': [None]}
    """

    def __init__(self, schema: Schema):
        self.schema = schema
        self._columns: dict[str, list[Any]] = {c.name: [] for c in schema}
        self._pending: dict[str, Any] = {}
        self.record_count = 0

    def _set(self, column: Column, value: Any) -> None:
        self._pending[column.name] = value

    def set_null(self, column: Column) -> None:
        self._set(column, None)

    def set_boolean(self, column: Column, value: bool) -> None:
        self._set(column, value)

    def set_long(self, column: Column, value: int) -> None:
        self._set(column, value)

    def set_double(self, column: Column, value: float) -> None:
        self._set(column, value)

    def set_string(self, column: Column, value: str) -> None:
        self._set(column, value)

    def set_timestamp(self, column: Column, value: datetime) -> None:
        self._set(column, value)

    def set_json(self, column: Column, value: Any) -> None:
        self._set(column, value)

    def add_record(self) -> None:
        for name, values in self._columns.items():
            values.append(self._pending.get(name))
        self._pending = {}
        self.record_count += 1

    def columns(self) -> dict[str, list[Any]]:
        """Column name -> values, in schema order."""
        return {name: list(values) for name, values in self._columns.items()}

    def rows(self) -> list[dict[str, Any]]:
        """Committed records as row dicts."""
        names = self.schema.names
        return [
            {name: self._columns[name][i] for name in names}
            for i in range(self.record_count)
        ]
