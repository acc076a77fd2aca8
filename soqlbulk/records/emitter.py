"""RecordEmitter - feed assembled JSON records through the schema into a page builder."""

import logging
from typing import Any, Callable, Iterable

from soqlbulk.errors import RemoteServiceError
from soqlbulk.records.page_builder import PageBuilder
from soqlbulk.records.schema import ColumnVisitor, Schema
from soqlbulk.records.visitor import JsonColumnVisitor

logger = logging.getLogger(__name__)


class RecordEmitter:
    """Writes one output record per JSON record, in order, skipping none.

    Args:
        schema: Target schema
        page_builder: Output sink
        visitor_factory: Builds the column visitor for one record
    """

    def __init__(
        self,
        schema: Schema,
        page_builder: PageBuilder,
        visitor_factory: Callable[[dict[str, Any], PageBuilder], ColumnVisitor] = JsonColumnVisitor,
    ):
        self.schema = schema
        self.page_builder = page_builder
        self.visitor_factory = visitor_factory

    def emit(self, records: Iterable[Any]) -> int:
        """Emit every record. Returns the number of records emitted.

        Raises:
            RemoteServiceError: If a record is not a JSON object
            RecordConversionError: If a value does not fit its column
        """
        count = 0
        for record in records:
            if not isinstance(record, dict):
                raise RemoteServiceError(
                    f"Record {count} is not a JSON object (got {type(record).__name__})"
                )
            self.schema.visit_columns(self.visitor_factory(record, self.page_builder))
            self.page_builder.add_record()
            count += 1

        logger.debug(f"Emitted {count} records")
        return count
