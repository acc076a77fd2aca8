"""Base protocols and interfaces for soqlbulk processors.

This module defines the core abstractions:
- Processor: Protocol for job processors (soql)
- RecordSink: Interface for writing emitted rows to storage
- EventClient: Interface for lifecycle event emission
- ProcessorRegistry: Dispatch mechanism for job_type → processor
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from google.cloud import bigquery

from soqlbulk.config import SoqlBulkConfig

if TYPE_CHECKING:
    from soqlbulk.bulk.client import ForceClient


@dataclass
class JobContext:
    """Context passed to processors during execution.

    Contains shared clients and runtime configuration.
    """

    bq_client: bigquery.Client
    run_id: str
    config: SoqlBulkConfig
    force_client: "ForceClient"
    dry_run: bool = False


@runtime_checkable
class RecordSink(Protocol):
    """Protocol for writing emitted rows."""

    def write_rows(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Write rows to a table.

        Args:
            table: Target table name (within the configured dataset)
            rows: Row dicts keyed by column name

        Returns:
            Number of rows written
        """
        ...


@runtime_checkable
class EventClient(Protocol):
    """Protocol for event emission.

    Wraps the event_client module.
    """

    def log_event(
        self,
        event_type: str,
        source_system: str,
        correlation_id: str,
        status: str,
        object_type: str | None = None,
        payload: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> None:
        """Log an event to event_log.

        Args:
            event_type: Event type (e.g., "ingest.completed")
            source_system: Source system identifier
            correlation_id: Run ID for tracing
            status: Status ("success" or "failed")
            object_type: Optional queried object
            payload: Optional telemetry payload
            error_message: Optional error message for failures
        """
        ...


@runtime_checkable
class Processor(Protocol):
    """Protocol for job processors.

    Each processor handles a specific job_type.
    """

    def run(
        self,
        job_spec: dict[str, Any],
        context: JobContext,
        record_sink: RecordSink,
        event_client: EventClient,
    ) -> None:
        """Execute the job.

        Args:
            job_spec: Parsed job specification
            context: Execution context with shared clients
            record_sink: Row storage interface
            event_client: Event emission interface

        Raises:
            Exception: On job failure (will be caught and logged by runner)
        """
        ...


class ProcessorRegistry:
    """Registry for dispatching jobs to processors by job_type."""

    def __init__(self) -> None:
        self._processors: dict[str, Processor] = {}

    def register(self, job_type: str, processor: Processor) -> None:
        """Register a processor for a job type.

        Args:
            job_type: Job type identifier (e.g., "soql")
            processor: Processor instance
        """
        self._processors[job_type] = processor

    def get(self, job_type: str) -> Processor:
        """Get processor for a job type.

        Args:
            job_type: Job type identifier

        Returns:
            Processor instance

        Raises:
            KeyError: If job_type not registered
        """
        if job_type not in self._processors:
            raise KeyError(f"Unknown job_type: {job_type}. Registered: {list(self._processors.keys())}")
        return self._processors[job_type]

    def list_types(self) -> list[str]:
        """List registered job types."""
        return list(self._processors.keys())


# Global registry instance
registry = ProcessorRegistry()
