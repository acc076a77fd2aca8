"""ResultAssembler - fetch every result part of a completed batch and merge them.

Parts may be fetched concurrently. The merged collection is always in
result-list order, then in-part order, whatever order the fetches finish in.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from typing import Any

from urllib3.exceptions import HTTPError as StreamError

from soqlbulk.errors import RemoteServiceError
from soqlbulk.stack_clients.bulk_connection import BulkConnection


class ResultAssembler:
    """Fetches and concatenates result parts.

    Args:
        connection: Bulk API connection
        max_workers: Maximum number of parts fetched at once
        logger: Logger (defaults to the module logger)
    """

    def __init__(self, connection: BulkConnection, max_workers: int = 4, logger: logging.Logger | None = None):
        self.connection = connection
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)

    def fetch_part(self, job_id: str, batch_id: str, result_id: str) -> list[dict[str, Any]]:
        """Fetch one result part and parse it as a JSON array.

        Raises:
            RemoteServiceError: If the part cannot be opened or is not a JSON array
        """
        stream = self.connection.get_query_result_stream(job_id, batch_id, result_id)
        try:
            with closing(stream):
                records = json.load(stream)
        except (OSError, ValueError, StreamError) as e:
            self.logger.error(f"Could not read result {result_id} of batch {batch_id}: {e}")
            raise RemoteServiceError(f"Could not read result {result_id} of batch {batch_id}: {e}") from e

        if not isinstance(records, list):
            raise RemoteServiceError(
                f"Result {result_id} of batch {batch_id} is not a JSON array "
                f"(got {type(records).__name__})"
            )

        self.logger.debug(f"result {result_id}: {len(records)} records")
        return records

    def assemble(self, job_id: str, batch_id: str, result_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch all parts and concatenate them in result-list order.

        Any failing part fails the whole assembly; no partial result is returned.
        """
        if not result_ids:
            return []

        workers = min(self.max_workers, len(result_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="result-fetch") as pool:
            # map() yields in submission order regardless of completion order
            parts = list(pool.map(lambda result_id: self.fetch_part(job_id, batch_id, result_id), result_ids))

        records: list[dict[str, Any]] = []
        for part in parts:
            records.extend(part)

        self.logger.info(f"Assembled {len(records)} records from {len(parts)} result part(s)")
        return records
