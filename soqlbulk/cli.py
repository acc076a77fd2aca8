"""
CLI interface for soqlbulk.

Provides commands to run SOQL bulk queries ad hoc and as defined jobs.

Jobs are defined as JSON files in jobs/definitions/**/*.json and dispatched
via the JobRunner to typed processors (soql).
"""

import json
from pathlib import Path

import click

from soqlbulk import __version__


# Job definitions directory
DEFINITIONS_DIR = Path(__file__).parent / "jobs" / "definitions"


def _get_available_jobs() -> list[str]:
    """Get list of available job IDs from all subdirectories."""
    from soqlbulk.job_runner import list_job_definitions

    if not DEFINITIONS_DIR.exists():
        return []
    return list_job_definitions(DEFINITIONS_DIR)


def _require_config(ctx):
    if "config" not in ctx.obj:
        click.echo(f"✗ Config not loaded: {ctx.obj.get('config_error', 'Unknown error')}", err=True)
        click.echo("Run 'soqlbulk init' to create a configuration file.", err=True)
        raise SystemExit(1)
    return ctx.obj["config"]


@click.group()
@click.version_option(version=__version__, prog_name="soqlbulk")
@click.pass_context
def main(ctx):
    """
    soqlbulk - Salesforce SOQL queries over the Bulk API.

    Run queries ad hoc or as JSON job specs loaded into BigQuery.
    """
    from soqlbulk.config import load_config
    from soqlbulk.utils import setup_logging

    ctx.ensure_object(dict)
    try:
        config = load_config()
    except Exception as e:
        # init does not need a config; other commands check ctx.obj
        ctx.obj["config_error"] = str(e)
        setup_logging()
        return

    ctx.obj["config"] = config
    setup_logging(
        log_level=config.log_level,
        log_file=Path(config.log_file).expanduser() if config.log_file else None,
    )


@main.command("run")
@click.argument("job")
@click.option("--dry-run", is_flag=True, help="Execute without writing to BigQuery")
@click.pass_context
def run(ctx, job: str, dry_run: bool):
    """
    Run a job by ID.

    JOB is the job ID (filename without .json extension).

    Examples:

        soqlbulk run soql_accounts

        soqlbulk run soql_accounts --dry-run
    """
    from soqlbulk.job_runner import run_job

    config = _require_config(ctx)

    if dry_run:
        click.echo("=" * 50)
        click.echo("=== DRY RUN MODE === (no BigQuery writes)")
        click.echo("=" * 50)

    available_jobs = _get_available_jobs()
    if job not in available_jobs:
        click.echo(f"✗ Unknown job: {job}", err=True)
        click.echo("\nAvailable jobs:", err=True)
        for jid in available_jobs:
            click.echo(f"  {jid}", err=True)
        raise SystemExit(1)

    try:
        run_job(job, config=config, dry_run=dry_run, definitions_dir=DEFINITIONS_DIR)
    except Exception as e:
        click.echo(f"✗ {job} failed: {e}", err=True)
        raise SystemExit(1)

    if dry_run:
        click.echo(f"\n[DRY-RUN] {job} completed (no writes)")
    else:
        click.echo(f"✓ {job} completed")


@main.command("query")
@click.argument("object_name", metavar="OBJECT")
@click.argument("soql")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              help="Write records as JSON lines to this file")
@click.pass_context
def query(ctx, object_name: str, soql: str, output: Path | None):
    """
    Run a SOQL query and print the records.

    Examples:

        soqlbulk query Account "SELECT Id, Name FROM Account"

        soqlbulk query Account "SELECT Id, Name FROM Account" -o accounts.jsonl
    """
    from soqlbulk.bulk.client import ForceClient
    from soqlbulk.errors import SoqlBulkError
    from soqlbulk.records import ColumnarPageBuilder, RecordEmitter, Schema, guess_columns

    config = _require_config(ctx)

    try:
        client = ForceClient.from_config(config)
        records = client.query(object_name, soql)
        schema = Schema.from_config(guess_columns(records))
        page_builder = ColumnarPageBuilder(schema)
        RecordEmitter(schema, page_builder).emit(records)
    except SoqlBulkError as e:
        click.echo(f"✗ Query failed: {e}", err=True)
        raise SystemExit(1)

    lines = [json.dumps(row, default=str) for row in page_builder.rows()]
    if output:
        output.write_text("".join(f"{line}\n" for line in lines))
        click.echo(f"✓ Wrote {len(lines)} records to {output}")
    else:
        for line in lines:
            click.echo(line)


@main.command("guess")
@click.argument("object_name", metavar="OBJECT")
@click.argument("soql")
@click.option("--sample-size", type=int, default=None, help="Records to inspect (default: all)")
@click.pass_context
def guess(ctx, object_name: str, soql: str, sample_size: int | None):
    """
    Guess output columns for a SOQL query.

    Prints a columns list that can be pasted into a job definition.

    Example:

        soqlbulk guess Account "SELECT Id, Name, AnnualRevenue FROM Account"
    """
    from soqlbulk.bulk.client import ForceClient
    from soqlbulk.errors import SoqlBulkError
    from soqlbulk.records import guess_columns

    config = _require_config(ctx)

    try:
        records = ForceClient.from_config(config).query(object_name, soql)
    except SoqlBulkError as e:
        click.echo(f"✗ Query failed: {e}", err=True)
        raise SystemExit(1)

    columns = guess_columns(records, sample_size=sample_size)
    click.echo(json.dumps({"columns": columns}, indent=2))


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize soqlbulk configuration."""
    from soqlbulk.config import get_soqlbulk_home
    import yaml

    home = get_soqlbulk_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = {
        "instance_url": "https://example.my.salesforce.com",
        "api_version": "48.0",
        "project": "my-gcp-project",
        "dataset": "salesforce_raw",
        "poll_initial_delay": 1,
        "poll_interval": 5,
        "wait_interval": 10,
        "max_fetch_workers": 4,
        "request_timeout": 60,
        "log_level": "INFO",
        "env_file": str(home / ".env"),
    }
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# SOQLBULK_SESSION_ID=...\n# GOOGLE_APPLICATION_CREDENTIALS=...\n")

    click.echo(f"Initialized soqlbulk config at {cfg_path}")


@main.group("jobs")
def jobs_group():
    """Manage and inspect jobs."""
    pass


@jobs_group.command("list")
@click.option("--type", "job_type", help="Filter by job type (soql)")
def list_jobs(job_type: str = None):
    """List available jobs."""
    job_files = list(DEFINITIONS_DIR.glob("**/*.json"))

    if not job_files:
        click.echo("No job definitions found.")
        return

    by_type: dict[str, list[str]] = {}
    for def_path in job_files:
        with open(def_path) as f:
            job_def = json.load(f)
        by_type.setdefault(job_def.get("job_type", "unknown"), []).append(def_path.stem)

    if job_type:
        if job_type not in by_type:
            click.echo(f"No jobs of type '{job_type}'. Available types: {', '.join(by_type.keys())}")
            return
        by_type = {job_type: by_type[job_type]}

    for jt in sorted(by_type.keys()):
        click.echo(f"{jt}:")
        for job_id in sorted(by_type[jt]):
            click.echo(f"  {job_id}")


@jobs_group.command("show")
@click.argument("job")
def show_job(job: str):
    """Show job definition details."""
    from soqlbulk.job_runner import load_job_definition

    try:
        job_def = load_job_definition(job, DEFINITIONS_DIR)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"✗ Unknown job: {job} ({e})", err=True)
        raise SystemExit(1)

    click.echo(f"Job: {job}")
    click.echo(f"Type: {job_def.get('job_type', 'unknown')}")
    click.echo()
    click.echo(json.dumps(job_def, indent=2))


if __name__ == "__main__":
    main()
