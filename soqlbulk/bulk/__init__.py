"""Bulk API query engine.

- JobManager: create the job and its single batch, close the job
- BatchStatusPoller: poll the batch until it is terminal
- ResultAssembler: fetch and merge result parts
- ForceClient: the blocking query() facade over all three
"""

from soqlbulk.bulk.assembler import ResultAssembler
from soqlbulk.bulk.client import ForceClient, run_query
from soqlbulk.bulk.jobs import JobManager
from soqlbulk.bulk.poller import BatchStatusPoller, PendingBatch
from soqlbulk.schemas import BatchInfo, BatchOutcome, BatchState, JobInfo

__all__ = [
    "BatchInfo",
    "BatchOutcome",
    "BatchState",
    "BatchStatusPoller",
    "ForceClient",
    "JobInfo",
    "JobManager",
    "PendingBatch",
    "ResultAssembler",
    "run_query",
]
