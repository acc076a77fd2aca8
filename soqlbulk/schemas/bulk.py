"""
Bulk schemas - Bulk API job, batch and outcome models.

A query runs as one job holding exactly one batch. The job fixes the
operation, concurrency mode and content type; the batch carries the SOQL
text and the state the poller watches:

    Queued -> InProgress -> {Completed, Failed, NotProcessed}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BatchState(str, Enum):
    """Bulk API batch states."""

    QUEUED = "Queued"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    NOT_PROCESSED = "NotProcessed"

    @property
    def is_terminal(self) -> bool:
        return self in (BatchState.COMPLETED, BatchState.FAILED, BatchState.NOT_PROCESSED)


@dataclass
class JobInfo:
    """A Bulk API query job against one object."""

    object: str
    id: str | None = None
    operation: str = "query"
    concurrency_mode: str = "Parallel"
    content_type: str = "JSON"
    state: str | None = None

    def to_request(self) -> dict[str, Any]:
        """Body for the create-job request."""
        return {
            "operation": self.operation,
            "object": self.object,
            "concurrencyMode": self.concurrency_mode,
            "contentType": self.content_type,
        }

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "JobInfo":
        return cls(
            id=data["id"],
            object=data.get("object", ""),
            operation=data.get("operation", "query"),
            concurrency_mode=data.get("concurrencyMode", "Parallel"),
            content_type=data.get("contentType", "JSON"),
            state=data.get("state"),
        )


@dataclass
class BatchInfo:
    """The single batch of a query job."""

    id: str
    job_id: str
    state: BatchState
    state_message: str | None = None
    records_processed: int = 0

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "BatchInfo":
        return cls(
            id=data["id"],
            job_id=data["jobId"],
            state=BatchState(data["state"]),
            state_message=data.get("stateMessage") or None,
            records_processed=int(data.get("numberRecordsProcessed") or 0),
        )


@dataclass
class BatchOutcome:
    """Terminal observation of a batch, as resolved by the poller."""

    state: BatchState
    state_message: str | None = None
    result_ids: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.state is BatchState.COMPLETED
