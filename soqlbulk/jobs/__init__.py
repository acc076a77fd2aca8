"""Job definitions for soqlbulk.

Definitions live in jobs/definitions/**/*.json and are loaded by
soqlbulk.job_runner.load_job_definition().
"""
