"""Main CLI entry point."""

import click
from b3ledger.config import ConfigError, Settings
from b3ledger.database.factories import create_sqlite_database
from b3ledger.logging_config import configure_logging

# Import and register all commands at module level
from b3ledger.cli.commands import (
    batch,
    import_cmd,
    operation,
    portfolio,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides B3LEDGER_DB_PATH environment variable)",
    envvar="B3LEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides B3LEDGER_LOG_LEVEL)",
)
@click.option(
    "--lang",
    type=click.Choice(["en", "pt_BR"]),
    help="Language of error messages (overrides B3LEDGER_LANG)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None, lang: str | None):
    """b3ledger - Brokerage statement consolidation.

    Import B3 statement exports, register operations, and consolidate them
    into per-user portfolios, interactively or on a schedule.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    configure_logging((log_level or settings.log_level).upper())
    ctx.obj["settings"] = settings
    ctx.obj["lang"] = lang or settings.lang

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
import_cmd.register_commands(cli)
operation.register_commands(cli)
portfolio.register_commands(cli)
batch.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
