"""Statement import command."""

from pathlib import Path

import click
from b3ledger.cli.error_handling import handle_domain_error
from b3ledger.domain.row_import import RowImportService
from b3ledger.domain.upload import UploadService


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--user", "user_id", required=True, type=int, help="Owning user ID")
@click.option(
    "--report",
    type=click.Path(dir_okay=False),
    help="Where to write the error report (same format as the input file)",
)
@click.pass_context
def import_statement(ctx, statement_file: str, user_id: int, report: str | None):
    """Import operations from a B3 statement export (.xlsx or .csv).

    Rows that fail are reported and the import carries on. Re-importing the
    same file stores its rows as duplicates without touching the portfolio.

    Examples:
        b3ledger import movimentacao-2024.xlsx --user 1
        b3ledger import movimentacao.csv --user 1 --report erros.csv
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    importer = RowImportService(db, timeout=settings.import_timeout)
    service = UploadService(db, importer=importer)

    path = Path(statement_file)
    try:
        result = service.process(path.read_bytes(), path.name, user_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Processed: {result.processed_rows} rows")
    click.echo(f"  Successful: {result.successful_rows} rows")
    click.echo(f"  Duplicates: {result.duplicate_rows} rows")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    Row {error.row_number}: {error.message}", err=True)
        if report:
            Path(report).write_bytes(result.error_report.getvalue())
            click.echo(f"  Error report written to {report}")
        else:
            click.echo("  Use --report PATH to save the error report")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
