"""Batch consolidation commands."""

import click
from b3ledger.batch.retry import RetryPolicy
from b3ledger.batch.scheduler import BatchScheduler
from b3ledger.batch.service import BatchRunStatus, BatchService

# Statuses that end the command with a non-zero exit code
FAILED_STATUSES = {
    BatchRunStatus.FAILED,
    BatchRunStatus.RESTART_ERROR,
    BatchRunStatus.UNEXPECTED_ERROR,
}


@click.group()
def batch_group():
    """Consolidate pending operations in chunks."""
    pass


@batch_group.command("run")
@click.option("--token", help="Run token (a new timestamp if omitted)")
@click.pass_context
def run_batch(ctx, token: str | None):
    """Run the consolidation job once."""
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    service = BatchService(db, chunk_size=settings.chunk_size)

    result = service.execute_batch(token)
    click.echo(f"Batch {result.token}: {result.status.value}")
    click.echo(f"  Start: {result.start_time}")
    click.echo(f"  End: {result.end_time}")
    if result.execution is not None:
        execution = result.execution
        click.echo(
            f"  Read: {execution.read_count} | Written: {execution.write_count} | "
            f"Skipped: {execution.skip_count} | Chunks: {execution.chunk_count}"
        )
    if result.message:
        click.echo(f"  Message: {result.message}", err=result.status in FAILED_STATUSES)
    if result.status in FAILED_STATUSES:
        ctx.exit(1)


@batch_group.command("schedule")
@click.option("--cron", help="Crontab expression (overrides B3LEDGER_BATCH_CRON)")
@click.pass_context
def schedule_batch(ctx, cron: str | None):
    """Run the consolidation job on a cron schedule until interrupted."""
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    service = BatchService(db, chunk_size=settings.chunk_size)
    policy = RetryPolicy(max_attempts=settings.retry_max_attempts, wait=settings.retry_wait)

    try:
        scheduler = BatchScheduler(
            service, cron=cron or settings.batch_cron, retry_policy=policy, blocking=True
        )
    except ValueError as e:
        click.echo(f"Error: Invalid cron expression: {e}", err=True)
        ctx.exit(1)

    click.echo(f"Scheduling consolidation with cron '{scheduler.cron}'. Press Ctrl+C to stop.")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown(wait=False)
        click.echo("Scheduler stopped.")


def register_commands(cli: click.Group) -> None:
    """Register batch commands with main CLI."""
    cli.add_command(batch_group, name="batch")
