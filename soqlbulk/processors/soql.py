"""SoqlProcessor - run a SOQL bulk query and load the records into BigQuery.

This processor handles all soql jobs by:
1. Reading object/SOQL and output columns from job_spec
2. Running the query through the ForceClient (job, batch, poll, fetch)
3. Guessing columns from all returned records if none are configured
4. Emitting every record into a columnar page builder
5. Writing rows to the sink table and emitting ingest.completed/failed events

Job spec:
    {
        "job_id": "soql_accounts",
        "job_type": "soql",
        "source": {"object": "Account", "soql": "SELECT Id, Name FROM Account"},
        "columns": [{"name": "Id", "type": "string"}, ...],      (optional)
        "sink": {"table": "accounts"},
    }
"""

import logging
import time
from typing import Any

from soqlbulk.errors import ConfigurationError
from soqlbulk.processors.base import (
    EventClient,
    JobContext,
    RecordSink,
    registry,
)
from soqlbulk.records.emitter import RecordEmitter
from soqlbulk.records.guess import guess_columns
from soqlbulk.records.page_builder import ColumnarPageBuilder
from soqlbulk.records.schema import Schema

logger = logging.getLogger(__name__)

SOURCE_SYSTEM = "salesforce"


def _require(section: dict[str, Any], key: str, where: str) -> Any:
    value = section.get(key)
    if not value:
        raise ConfigurationError(f"Job definition missing {where}.{key}")
    return value


class SoqlProcessor:
    """Processor for soql jobs.

    Runs the bulk query, converts records through the schema and writes
    them to the record sink. Handles event emission.
    """

    def run(
        self,
        job_spec: dict[str, Any],
        context: JobContext,
        record_sink: RecordSink,
        event_client: EventClient,
    ) -> None:
        """Execute a soql job.

        Args:
            job_spec: Parsed job specification with source/sink config
            context: Execution context with clients and run_id
            record_sink: Row storage interface
            event_client: Event emission interface
        """
        job_id = job_spec["job_id"]
        source = job_spec.get("source", {})
        sink = job_spec.get("sink", {})

        object_name = _require(source, "object", "source")
        soql = _require(source, "soql", "source")
        table = _require(sink, "table", "sink")

        logger.info(f"Starting soql job: {job_id}")
        logger.info(f"  object: {object_name}, table: {table}")
        if context.dry_run:
            logger.info("  DRY RUN - no writes will occur")

        start_time = time.time()

        try:
            records = context.force_client.query(object_name, soql)

            columns = job_spec.get("columns")
            if not columns:
                columns = guess_columns(records)
                logger.info(f"Guessed {len(columns)} columns: {[c['name'] for c in columns]}")
            schema = Schema.from_config(columns)

            page_builder = ColumnarPageBuilder(schema)
            emitted = RecordEmitter(schema, page_builder).emit(records)

            if context.dry_run:
                written = 0
                logger.info(f"DRY RUN: Would have written {emitted} rows to {table}")
            else:
                written = record_sink.write_rows(table, page_builder.rows())

            duration_seconds = time.time() - start_time

            event_client.log_event(
                event_type="ingest.completed",
                source_system=SOURCE_SYSTEM,
                object_type=object_name,
                correlation_id=context.run_id,
                status="success",
                payload={
                    "job_id": job_id,
                    "records_extracted": len(records),
                    "records_emitted": emitted,
                    "rows_written": written,
                    "columns": len(schema),
                    "duration_seconds": round(duration_seconds, 2),
                    "dry_run": context.dry_run,
                },
            )

            logger.info(
                f"soql job complete: {emitted} records, written={written}, "
                f"duration={duration_seconds:.2f}s"
            )

        except Exception as e:
            duration_seconds = time.time() - start_time
            logger.error(f"soql job failed: {e}", exc_info=True)

            event_client.log_event(
                event_type="ingest.failed",
                source_system=SOURCE_SYSTEM,
                object_type=object_name,
                correlation_id=context.run_id,
                status="failed",
                error_message=str(e),
                payload={
                    "job_id": job_id,
                    "error_type": type(e).__name__,
                    "duration_seconds": round(duration_seconds, 2),
                },
            )

            raise


# Register with global registry
registry.register("soql", SoqlProcessor())
