"""JobRunner - Central dispatcher for soqlbulk jobs.

This module provides the main entry point for executing jobs:
1. Loads JSON job definitions from jobs/definitions/
2. Instantiates shared clients (BigQuery, ForceClient, EventClient, RecordSink)
3. Dispatches to the appropriate processor by job_type
4. Handles errors and emits job lifecycle events

Usage:
    from soqlbulk.job_runner import run_job

    # Run a job by ID (loads from jobs/definitions/**/{job_id}.json)
    run_job("soql_accounts", config=config)

    # Run with options
    run_job("soql_accounts", config=config, dry_run=True)
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from google.cloud import bigquery

from soqlbulk.bulk.client import ForceClient
from soqlbulk.config import SoqlBulkConfig
from soqlbulk.processors import registry
from soqlbulk.processors.base import JobContext
from soqlbulk.stack_clients import event_client as ec
from soqlbulk.stack_clients.record_sink import BigQueryRecordSink

logger = logging.getLogger(__name__)

SOURCE_SYSTEM = "soqlbulk"

# Default job definitions directory
DEFINITIONS_DIR = Path(__file__).parent / "jobs" / "definitions"


class BigQueryEventClient:
    """EventClient implementation backed by BigQuery.

    Implements the EventClient protocol using the event_client module.
    """

    def __init__(self, bq_client: bigquery.Client, config: SoqlBulkConfig, dry_run: bool = False):
        self.bq_client = bq_client
        self.config = config
        self.dry_run = dry_run

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
        """Log an event to event_log."""
        ec.log_event(
            event_type=event_type,
            source_system=source_system,
            correlation_id=correlation_id,
            status=status,
            object_type=object_type,
            payload=payload,
            error_message=error_message,
            bq_client=self.bq_client,
            dataset=self.config.dataset,
            dry_run=self.dry_run,
        )


def load_job_definition(job_id: str, definitions_dir: Path | None = None) -> dict[str, Any]:
    """Load a job definition from JSON file.

    Searches for {job_id}.json in the definitions directory and all subdirectories.

    Args:
        job_id: Job identifier (e.g., "soql_accounts")
        definitions_dir: Directory containing job definitions (defaults to jobs/definitions/)

    Returns:
        Parsed job definition dict

    Raises:
        FileNotFoundError: If job definition file doesn't exist
        ValueError: If more than one definition matches
        json.JSONDecodeError: If job definition is invalid JSON
    """
    definitions_dir = definitions_dir or DEFINITIONS_DIR
    filename = f"{job_id}.json"

    def_path = definitions_dir / filename
    if not def_path.exists():
        found = list(definitions_dir.glob(f"**/{filename}"))
        if not found:
            raise FileNotFoundError(f"Job definition not found: {def_path} (also searched subdirectories)")
        if len(found) > 1:
            raise ValueError(f"Multiple job definitions found for {job_id}: {found}")
        def_path = found[0]

    with open(def_path) as f:
        job_def = json.load(f)

    if "job_id" not in job_def:
        job_def["job_id"] = job_id

    return job_def


def list_job_definitions(definitions_dir: Path | None = None) -> list[str]:
    """Return the ids of all job definitions, sorted."""
    definitions_dir = definitions_dir or DEFINITIONS_DIR
    return sorted(path.stem for path in definitions_dir.glob("**/*.json"))


def run_job(
    job_id: str,
    *,
    config: SoqlBulkConfig,
    dry_run: bool = False,
    definitions_dir: Path | None = None,
    bq_client: bigquery.Client | None = None,
    force_client: ForceClient | None = None,
) -> None:
    """Run a job by ID.

    This is the main entry point for job execution. It:
    1. Loads the job definition from jobs/definitions/**/{job_id}.json
    2. Creates shared clients (BigQuery, ForceClient, RecordSink, EventClient)
    3. Dispatches to the appropriate processor by job_type
    4. Emits job.started and job.completed/job.failed events

    Args:
        job_id: Job identifier (e.g., "soql_accounts")
        config: Configuration object
        dry_run: If True, skip all writes and log what would happen
        definitions_dir: Optional directory containing job definitions
        bq_client: Optional BigQuery client (created if not provided)
        force_client: Optional ForceClient (built from config if not provided)

    Raises:
        FileNotFoundError: If job definition doesn't exist
        ValueError: If job definition has no job_type
        KeyError: If job_type is not registered
        Exception: If processor raises an error
    """
    run_id = f"{job_id}-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:8]}"

    job_def = load_job_definition(job_id, definitions_dir)
    job_type = job_def.get("job_type")

    if not job_type:
        raise ValueError(f"Job definition missing job_type: {job_id}")

    logger.info(f"Starting job: {job_id} (type={job_type}, run_id={run_id})")
    if dry_run:
        logger.info("  DRY RUN mode enabled")

    if bq_client is None:
        bq_client = bigquery.Client(project=config.project)
    if force_client is None:
        force_client = ForceClient.from_config(config)

    record_sink = BigQueryRecordSink(bq_client, config.dataset)
    event_client = BigQueryEventClient(bq_client, config, dry_run=dry_run)

    context = JobContext(
        bq_client=bq_client,
        run_id=run_id,
        config=config,
        force_client=force_client,
        dry_run=dry_run,
    )

    event_client.log_event(
        event_type="job.started",
        source_system=SOURCE_SYSTEM,
        correlation_id=run_id,
        status="success",
        payload={
            "job_id": job_id,
            "job_type": job_type,
            "dry_run": dry_run,
        },
    )

    try:
        # Import processors to ensure registration
        import soqlbulk.processors.soql  # noqa: F401

        processor = registry.get(job_type)
        processor.run(job_def, context, record_sink, event_client)

        event_client.log_event(
            event_type="job.completed",
            source_system=SOURCE_SYSTEM,
            correlation_id=run_id,
            status="success",
            payload={
                "job_id": job_id,
                "job_type": job_type,
            },
        )

        logger.info(f"Job completed: {job_id}")

    except Exception as e:
        logger.error(f"Job failed: {job_id} - {e}", exc_info=True)

        event_client.log_event(
            event_type="job.failed",
            source_system=SOURCE_SYSTEM,
            correlation_id=run_id,
            status="failed",
            error_message=str(e),
            payload={
                "job_id": job_id,
                "job_type": job_type,
                "error_type": type(e).__name__,
            },
        )

        raise
