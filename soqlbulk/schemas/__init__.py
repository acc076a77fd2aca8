"""
soqlbulk.schemas - Data structures exchanged with the Bulk API.

JobInfo -> BatchInfo (one per job) -> BatchOutcome (resolved by the poller)
"""

from .bulk import (
    BatchInfo,
    BatchOutcome,
    BatchState,
    JobInfo,
)

__all__ = [
    "BatchInfo",
    "BatchOutcome",
    "BatchState",
    "JobInfo",
]
