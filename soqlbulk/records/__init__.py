"""Schema-driven conversion of JSON records into columnar output."""

from soqlbulk.records.emitter import RecordEmitter
from soqlbulk.records.guess import guess_columns
from soqlbulk.records.page_builder import ColumnarPageBuilder, PageBuilder
from soqlbulk.records.schema import Column, ColumnType, ColumnVisitor, Schema
from soqlbulk.records.visitor import JsonColumnVisitor

__all__ = [
    "Column",
    "ColumnType",
    "ColumnVisitor",
    "ColumnarPageBuilder",
    "JsonColumnVisitor",
    "PageBuilder",
    "RecordEmitter",
    "Schema",
    "guess_columns",
]
