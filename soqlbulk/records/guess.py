"""Guess a column schema from query results.

Used when a job definition carries no "columns". Field names keep the order
in which they are first seen; the type of each field is the narrowest type
that fits every non-null value. The schema is guessed over every record
that will be emitted against it, so a late record cannot fall outside it.
"""

import json
import logging
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

# Bulk API JSON renders datetimes as ISO strings with a compact offset,
# which JsonColumnVisitor parses without an explicit format
TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
]


def _is_timestamp(value: str) -> bool:
    for fmt in TIMESTAMP_FORMATS:
        try:
            datetime.strptime(value, fmt)
            return True
        except ValueError:
            continue
    return False


def _value_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "long"
    if isinstance(value, float):
        return "double"
    if isinstance(value, (dict, list)):
        return "json"
    if isinstance(value, str) and _is_timestamp(value):
        return "timestamp"
    return "string"


def _merge(current: str | None, new: str) -> str:
    if current is None or current == new:
        return new
    if {current, new} == {"long", "double"}:
        return "double"
    return "string"


def guess_columns(records: list[Any], sample_size: int | None = None) -> list[dict[str, Any]]:
    """
    Infer column declarations from query results.

    Args:
        records: Query results
        sample_size: Inspect only the first sample_size records (preview only;
            None inspects every record)

    Returns:
        Column declarations suitable for Schema.from_config()

    Example:
        >>> guess_columns([{"Id": "001", "Amount": 1}, {"Id": "002", "Amount": 2.5}])
        [{'name': 'Id', 'type': 'string'}, {'name': 'Amount', 'type': 'double'}]
    """
    if sample_size is not None:
        records = records[:sample_size]
    sample = [r for r in records if isinstance(r, dict)]
    logger.info(f"guess sample size: {len(sample)} records, {len(json.dumps(sample, default=str))} bytes")

    types: dict[str, str | None] = {}
    for record in sample:
        for name, value in record.items():
            types.setdefault(name, None)
            if value is None:
                continue
            types[name] = _merge(types[name], _value_type(value))

    return [{"name": name, "type": column_type or "string"} for name, column_type in types.items()]
