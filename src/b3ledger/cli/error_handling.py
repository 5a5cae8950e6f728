"""CLI error handling helpers."""

import click

from b3ledger.cli.messages import DEFAULT_LANG, error_label, render_error


def current_lang(ctx: click.Context) -> str:
    obj = ctx.find_root().obj or {}
    return obj.get("lang", DEFAULT_LANG)


def handle_domain_error(ctx: click.Context, error: ValueError) -> None:
    """Render a domain error in the configured language and exit with failure."""
    lang = current_lang(ctx)
    click.echo(f"{error_label(lang)}: {render_error(error, lang)}", err=True)
    ctx.exit(1)
