"""
Stack clients for soqlbulk.

This package contains clients for interacting with external systems and services.
Currently includes:
- bulk_connection: Salesforce Bulk API over HTTP
- event_client: Write events to BigQuery
- record_sink: Load emitted rows into BigQuery
"""

__all__ = ["bulk_connection", "event_client", "record_sink"]
