"""
soqlbulk - SOQL bulk query runner

Runs SOQL queries through the Salesforce Bulk API, converts the results to
typed columns and loads them into BigQuery. Jobs emit events to BigQuery
for tracking and observability.
"""

__version__ = "0.1.0"
__author__ = "Local Pipeline Team"


__all__ = ["SoqlBulkConfig", "load_config", "get_soqlbulk_home"]

from .config import SoqlBulkConfig, load_config, get_soqlbulk_home
