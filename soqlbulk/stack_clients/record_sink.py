"""
Record sink - load emitted query results into BigQuery.

Rows come from ColumnarPageBuilder.rows(); values are made JSON-safe before
the streaming insert.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List

from soqlbulk.errors import RemoteServiceError

logger = logging.getLogger(__name__)

# insert_rows_json request size stays well under the streaming insert limit
INSERT_BATCH_SIZE = 500


def _to_json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class BigQueryRecordSink:
    """Loads emitted rows into a BigQuery table with streaming inserts.

    Timestamps are sent as ISO strings and json columns as JSON text.
    """

    def __init__(self, bq_client, dataset: str, batch_size: int = INSERT_BATCH_SIZE):
        self.bq_client = bq_client
        self.dataset = dataset
        self.batch_size = batch_size

    def write_rows(self, table: str, rows: List[Dict[str, Any]]) -> int:
        """Insert rows into {dataset}.{table}. Returns the number of rows written.

        Raises:
            RemoteServiceError: If BigQuery reports insert errors
        """
        table_ref = f"{self.dataset}.{table}"
        written = 0
        for start in range(0, len(rows), self.batch_size):
            chunk = [
                {name: _to_json_value(value) for name, value in row.items()}
                for row in rows[start:start + self.batch_size]
            ]
            errors = self.bq_client.insert_rows_json(table_ref, chunk)
            if errors:
                raise RemoteServiceError(f"{table_ref} insert failed: {errors}")
            written += len(chunk)

        logger.info(f"Wrote {written} rows to {table_ref}")
        return written
