"""Portfolio query commands."""

import click
from b3ledger.domain.portfolio import PortfolioService


@click.group()
def portfolio_group():
    """Inspect consolidated portfolios."""
    pass


@portfolio_group.command("show")
@click.option("--user", "user_id", required=True, type=int, help="Owning user ID")
@click.pass_context
def show_portfolio(ctx, user_id: int):
    """Show the assets of a user's portfolio."""
    db = ctx.obj["db"]
    service = PortfolioService(db)

    portfolio = service.get_portfolio(user_id)
    if portfolio is None:
        click.echo(f"No portfolio for user {user_id}.")
        return

    holdings = service.get_holdings(user_id)
    institutions = service.list_institutions(user_id)
    transactions = service.list_transactions(user_id)

    click.echo(f"\nPortfolio {portfolio.id} (user {user_id})")
    if institutions:
        click.echo(f"Institutions: {', '.join(inst.name for inst in institutions)}")
    click.echo("-" * 100)
    click.echo(
        f"{'Ticker':<24} {'Type':<22} {'Quantity':>14} {'Avg price':>12} "
        f"{'Invested':>16} {'Txns':>6}"
    )
    click.echo("-" * 100)
    for holding in holdings:
        kind = holding.asset_type or ("Fixed income" if holding.asset.fixed_income else "Variable")
        quantity = format(holding.quantity.normalize(), "f")
        click.echo(
            f"{holding.asset.ticker[:24]:<24} {kind[:22]:<22} {quantity:>14} "
            f"{f'R$ {holding.average_price:,.2f}':>12} {f'R$ {holding.invested:,.2f}':>16} "
            f"{holding.transaction_count:>6}"
        )
    click.echo("-" * 100)
    profit_count = sum(1 for txn in transactions if txn.asset_id is None)
    click.echo(
        f"Assets: {len(holdings)} | Transactions: {len(transactions)} "
        f"(income without asset: {profit_count})"
    )


def register_commands(cli: click.Group) -> None:
    """Register portfolio commands with main CLI."""
    cli.add_command(portfolio_group, name="portfolio")
