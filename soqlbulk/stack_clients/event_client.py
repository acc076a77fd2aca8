"""
Event client for writing to the BigQuery event_log table.

- log_event(): Write one event envelope to {dataset}.event_log

Usage:
    from google.cloud import bigquery
    from soqlbulk.stack_clients.event_client import log_event

    client = bigquery.Client()

    log_event(
        event_type="job.started",
        source_system="soqlbulk",
        correlation_id="soql_accounts-20251124120000-1a2b3c4d",
        status="success",
        payload={"job_id": "soql_accounts"},
        bq_client=client,
        dataset="salesforce_raw",
    )
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

EVENT_LOG_TABLE = "event_log"


def log_event(
    *,
    event_type: str,
    source_system: str,
    correlation_id: str,
    bq_client,
    dataset: str,
    status: str = "success",
    object_type: Optional[str] = None,
    error_message: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
    dry_run: bool = False,
) -> None:
    """
    Write event envelope to event_log table.

    Args:
        event_type: Type of event (e.g., "job.started", "ingest.completed")
        source_system: Provider family (e.g., "soqlbulk", "salesforce")
        correlation_id: Correlation ID for tracing (e.g., run_id)
        bq_client: google.cloud.bigquery.Client instance
        dataset: BigQuery dataset holding event_log
        status: Event status ("success" | "failed")
        object_type: Queried object (e.g., "Account") - NULL for job events
        error_message: Human-readable error summary if status="failed"
        payload: Optional small telemetry dict (counts, duration, error metadata)
        dry_run: Log the event instead of writing it

    Raises:
        ValueError: If required fields are invalid
        RuntimeError: If BigQuery write fails
    """
    if not event_type or not isinstance(event_type, str):
        raise ValueError("event_type must be a non-empty string")
    if not source_system or not isinstance(source_system, str):
        raise ValueError("source_system must be a non-empty string")
    if not correlation_id or not isinstance(correlation_id, str):
        raise ValueError("correlation_id must be a non-empty string")

    if dry_run:
        logger.info(f"[DRY-RUN] Would log event {event_type} for {source_system} status={status}")
        if payload:
            logger.debug(f"[DRY-RUN] Event payload: {payload}")
        return

    envelope = {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "source_system": source_system,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "status": status,
        "correlation_id": correlation_id,
    }

    # Add optional fields only if they have values
    if object_type:
        envelope["object_type"] = object_type
    if error_message:
        envelope["error_message"] = error_message
    if payload is not None:
        envelope["payload"] = json.dumps(payload)

    table_ref = f"{dataset}.{EVENT_LOG_TABLE}"
    errors = bq_client.insert_rows_json(table_ref, [envelope])

    if errors:
        raise RuntimeError(f"{EVENT_LOG_TABLE} insert failed: {errors}")
