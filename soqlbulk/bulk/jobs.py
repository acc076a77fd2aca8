"""JobManager - create, feed and close Bulk API query jobs."""

import logging

from soqlbulk.errors import RemoteServiceError
from soqlbulk.schemas import BatchInfo, JobInfo
from soqlbulk.stack_clients.bulk_connection import BulkConnection


class JobManager:
    """Owns the job lifecycle of one query: create, add one batch, close."""

    def __init__(self, connection: BulkConnection, logger: logging.Logger | None = None):
        self.connection = connection
        self.logger = logger or logging.getLogger(__name__)

    def create_job(self, object_name: str) -> JobInfo:
        """Create a parallel JSON query job for an object.

        Raises:
            RemoteServiceError: If the service rejects the job
        """
        job = self.connection.create_job(JobInfo(object=object_name))
        self.logger.debug(f"Created job {job.id} for object {object_name}")
        return job

    def create_batch(self, job: JobInfo, soql: str) -> BatchInfo:
        """Submit the query text as the job's only batch.

        Raises:
            RemoteServiceError: If the service rejects the batch
        """
        batch = self.connection.create_batch(job, soql)
        self.logger.info(f"batch_id is {batch.id}, job_id is {batch.job_id}")
        return batch

    def close_job(self, job: JobInfo) -> None:
        """Close the job. Best-effort: failures are logged, never raised."""
        try:
            self.connection.close_job(job.id)
        except RemoteServiceError as e:
            self.logger.warning(f"Could not close job {job.id}: {e}")
