"""
ForceClient - blocking SOQL bulk query facade.

query() runs the whole job lifecycle:

    create_job -> create_batch -> poll until terminal -> fetch result parts
               -> close_job (always, best-effort)

and returns every record of every result part, in order. Any failure aborts
the query; there is no partial result.

Usage:
    from soqlbulk.bulk import ForceClient

    client = ForceClient.from_config(config)
    records = client.query("Account", "SELECT Id, Name FROM Account")
"""

import logging
import time
from typing import Any, Callable

from soqlbulk.bulk.assembler import ResultAssembler
from soqlbulk.bulk.jobs import JobManager
from soqlbulk.bulk.poller import BATCH_STATUS_CHECK_INTERVAL, INITIAL_DELAY, PERIOD, BatchStatusPoller
from soqlbulk.config import SoqlBulkConfig
from soqlbulk.records.emitter import RecordEmitter
from soqlbulk.records.page_builder import PageBuilder
from soqlbulk.records.schema import Schema
from soqlbulk.stack_clients.bulk_connection import BulkConnection


class ForceClient:
    """Runs SOQL queries through the Bulk API.

    Args:
        connection: Authenticated Bulk API connection
        poll_initial_delay: Seconds before the first batch status check
        poll_interval: Seconds between batch status checks
        wait_interval: Seconds between the caller's completion checks
        max_fetch_workers: Result parts fetched concurrently
        sleep: Sleep function for the caller's wait loop
        logger: Logger shared by all components (defaults to module loggers)
    """

    def __init__(
        self,
        connection: BulkConnection,
        *,
        poll_initial_delay: float = INITIAL_DELAY,
        poll_interval: float = PERIOD,
        wait_interval: float = BATCH_STATUS_CHECK_INTERVAL,
        max_fetch_workers: int = 4,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ):
        self.connection = connection
        self.logger = logger or logging.getLogger(__name__)
        self.jobs = JobManager(connection, logger=logger)
        self.poller = BatchStatusPoller(
            connection,
            initial_delay=poll_initial_delay,
            period=poll_interval,
            wait_interval=wait_interval,
            sleep=sleep,
            logger=logger,
        )
        self.assembler = ResultAssembler(connection, max_workers=max_fetch_workers, logger=logger)

    @classmethod
    def from_config(cls, config: SoqlBulkConfig, logger: logging.Logger | None = None) -> "ForceClient":
        """Build a client from configuration.

        Raises:
            ConfigurationError: If no session id is configured
        """
        connection = BulkConnection(
            config.rest_endpoint,
            config.resolve_session_id(),
            timeout=config.request_timeout,
        )
        return cls(
            connection,
            poll_initial_delay=config.poll_initial_delay,
            poll_interval=config.poll_interval,
            wait_interval=config.wait_interval,
            max_fetch_workers=config.max_fetch_workers,
            logger=logger,
        )

    def query(self, object_name: str, soql: str) -> list[dict[str, Any]]:
        """
        Run a SOQL query and return all records.

        Args:
            object_name: Object the query reads (e.g., "Account")
            soql: SOQL query text

        Returns:
            Records of all result parts, in result-list order

        Raises:
            RemoteServiceError: If the service rejects a request or returns unreadable data
            ConfigurationError: If the batch ends Failed or NotProcessed
            InterruptedExecution: If the wait for the batch is interrupted
        """
        job = self.jobs.create_job(object_name)
        try:
            batch = self.jobs.create_batch(job, soql)
            result_ids = self.poller.await_completion(job, batch)
            records = self.assembler.assemble(job.id, batch.id, result_ids)
        finally:
            self.jobs.close_job(job)

        self.logger.info(f"Query on {object_name} returned {len(records)} records (job_id={job.id})")
        return records


def run_query(
    client: ForceClient,
    object_name: str,
    soql: str,
    schema: Schema,
    page_builder: PageBuilder,
) -> int:
    """Run a query and emit every record into the page builder.

    Returns:
        Number of records emitted
    """
    records = client.query(object_name, soql)
    return RecordEmitter(schema, page_builder).emit(records)
