"""Output schema: an ordered list of typed columns.

Columns are declared in job definitions as:

    "columns": [
        {"name": "Id", "type": "string"},
        {"name": "AnnualRevenue", "type": "double"},
        {"name": "CreatedDate", "type": "timestamp", "format": "%Y-%m-%dT%H:%M:%S.%f%z"}
    ]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Protocol, runtime_checkable

from soqlbulk.errors import ConfigurationError


class ColumnType(str, Enum):
    BOOLEAN = "boolean"
    LONG = "long"
    DOUBLE = "double"
    STRING = "string"
    TIMESTAMP = "timestamp"
    JSON = "json"


@dataclass(frozen=True)
class Column:
    index: int
    name: str
    type: ColumnType
    format: str | None = None


@runtime_checkable
class ColumnVisitor(Protocol):
    """Per-column callbacks, one method per column type."""

    def boolean_column(self, column: Column) -> None: ...

    def long_column(self, column: Column) -> None: ...

    def double_column(self, column: Column) -> None: ...

    def string_column(self, column: Column) -> None: ...

    def timestamp_column(self, column: Column) -> None: ...

    def json_column(self, column: Column) -> None: ...


_VISIT_METHODS = {
    ColumnType.BOOLEAN: "boolean_column",
    ColumnType.LONG: "long_column",
    ColumnType.DOUBLE: "double_column",
    ColumnType.STRING: "string_column",
    ColumnType.TIMESTAMP: "timestamp_column",
    ColumnType.JSON: "json_column",
}


class Schema:
    """Ordered, typed column list."""

    def __init__(self, columns: list[Column]):
        self.columns = list(columns)

    @classmethod
    def from_config(cls, columns: list[dict[str, Any]]) -> "Schema":
        """Build a schema from column declarations.

        Raises:
            ConfigurationError: On a missing name, duplicate name or unknown type
        """
        built = []
        seen = set()
        for index, spec in enumerate(columns):
            name = spec.get("name")
            if not name:
                raise ConfigurationError(f"Column {index} is missing 'name'")
            if name in seen:
                raise ConfigurationError(f"Duplicate column name: {name}")
            seen.add(name)
            try:
                column_type = ColumnType(spec.get("type", "string"))
            except ValueError:
                valid = [t.value for t in ColumnType]
                raise ConfigurationError(f"Column {name}: unknown type {spec.get('type')!r}. Valid: {valid}")
            built.append(Column(index=index, name=name, type=column_type, format=spec.get("format")))
        return cls(built)

    def to_config(self) -> list[dict[str, Any]]:
        result = []
        for column in self.columns:
            entry: dict[str, Any] = {"name": column.name, "type": column.type.value}
            if column.format:
                entry["format"] = column.format
            result.append(entry)
        return result

    @property
    def names(self) -> list[str]:
        return [column.name for column in self.columns]

    def visit_columns(self, visitor: ColumnVisitor) -> None:
        """Call the visitor once per column, in column order."""
        for column in self.columns:
            getattr(visitor, _VISIT_METHODS[column.type])(column)

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __repr__(self) -> str:
        return f"Schema({', '.join(f'{c.name}:{c.type.value}' for c in self.columns)})"
