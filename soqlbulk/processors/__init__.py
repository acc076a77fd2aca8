"""soqlbulk processors package.

Provides typed processors for job execution:
- SoqlProcessor: Runs a SOQL bulk query and loads the records into BigQuery

All processors implement the Processor protocol and are registered
with the global registry for dispatch by job_type.
"""

from soqlbulk.processors.base import (
    EventClient,
    JobContext,
    Processor,
    ProcessorRegistry,
    RecordSink,
    registry,
)

__all__ = [
    "EventClient",
    "JobContext",
    "Processor",
    "ProcessorRegistry",
    "RecordSink",
    "registry",
]
