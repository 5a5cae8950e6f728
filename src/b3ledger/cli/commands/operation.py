"""Operation management commands."""

import click
from b3ledger.cli.error_handling import handle_domain_error
from b3ledger.domain.operation import Operation
from b3ledger.domain.operation_service import OperationService
from b3ledger.utils.amount_parser import parse_amount
from b3ledger.utils.date_parser import parse_date


@click.group()
def operation_group():
    """Register and inspect operations."""
    pass


@operation_group.command("add")
@click.option("--user", "user_id", required=True, type=int, help="Owning user ID")
@click.option(
    "--date",
    required=True,
    help="Operation date (DD/MM/YYYY, YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--direction", required=True, help="Entrada/Credito or Saída/Debito")
@click.option("--movement", required=True, help="Movement as written in the statement (e.g., 'Compra / Venda')")
@click.option("--product", required=True, help="Product description (e.g., 'PETR4 - PETROBRAS')")
@click.option("--institution", required=True, help="Brokerage or bank name")
@click.option("--quantity", required=True, help="Quantity (e.g., 100 or 0,5)")
@click.option("--price", required=True, help="Unit price (e.g., 10.50 or 10,50)")
@click.option("--value", help="Operation value (defaults to price x quantity)")
@click.option("--original-id", help="Source identifier, used to detect re-imports")
@click.pass_context
def add_operation(
    ctx,
    user_id: int,
    date: str,
    direction: str,
    movement: str,
    product: str,
    institution: str,
    quantity: str,
    price: str,
    value: str | None,
    original_id: str | None,
):
    """Register an operation and consolidate it.

    Examples:
        b3ledger operation add --user 1 --date 15/03/2024 --direction Debito \\
            --movement "Compra / Venda" --product "PETR4 - PETROBRAS" \\
            --institution "XP INVESTIMENTOS" --quantity 100 --price 10,50
    """
    db = ctx.obj["db"]
    service = OperationService(db)

    try:
        op_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        op_quantity = parse_amount(quantity)
        op_price = parse_amount(price)
        op_value = parse_amount(value) if value is not None else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    if op_value is None and op_quantity is not None and op_price is not None:
        op_value = op_quantity * op_price

    try:
        operation = Operation(
            date=op_date,
            quantity=op_quantity,
            unit_price=op_price,
            value=op_value,
            user_id=user_id,
            direction=direction,
            movement=movement,
            product=product,
            institution=institution,
            original_id=original_id,
        )
        saved = service.register(operation)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created operation {saved.id}")
    click.echo(f"  Date: {saved.date}")
    click.echo(f"  Product: {saved.product}")
    click.echo(f"  Quantity: {saved.quantity}")
    click.echo(f"  Value: {saved.value}")
    click.echo(f"  Consolidated: {'yes' if saved.dimensioned else 'no'}")


@operation_group.command("list")
@click.option("--user", "user_id", type=int, help="Only operations of this user")
@click.option("--no-duplicates", is_flag=True, help="Hide operations flagged duplicate")
@click.option("--deleted", is_flag=True, help="Include deleted operations")
@click.pass_context
def list_operations(ctx, user_id: int | None, no_duplicates: bool, deleted: bool):
    """List operations in registration order."""
    db = ctx.obj["db"]
    service = OperationService(db)

    operations = service.list_operations(
        user_id=user_id, include_duplicates=not no_duplicates, include_deleted=deleted
    )
    if not operations:
        click.echo("No operations found.")
        return

    click.echo(f"\nFound {len(operations)} operation(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Dir':<8} {'Movement':<24} {'Product':<24} "
        f"{'Quantity':>12} {'Value':>14} {'Flags':<6}"
    )
    click.echo("-" * 110)
    for op in operations:
        flags = "".join(
            letter
            for letter, on in (("D", op.duplicate), ("C", op.dimensioned), ("X", op.deleted))
            if on
        )
        click.echo(
            f"{op.id:<6} {str(op.date):<12} {(op.direction or '')[:8]:<8} "
            f"{(op.movement or '')[:24]:<24} {(op.product or '')[:24]:<24} "
            f"{str(op.quantity):>12} {str(op.value):>14} {flags:<6}"
        )
    click.echo("-" * 110)
    click.echo("Flags: D=duplicate, C=consolidated, X=deleted")


@operation_group.command("delete")
@click.argument("operation_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_operation(ctx, operation_id: int, yes: bool) -> None:
    """Soft delete an operation.

    Examples:
        b3ledger operation delete 1
    """
    db = ctx.obj["db"]
    service = OperationService(db)

    if service.get_operation(operation_id) is None:
        click.echo(f"Error: Operation {operation_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete operation {operation_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_operation(operation_id)
        click.echo(f"Deleted operation {operation_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register operation commands with main CLI."""
    cli.add_command(operation_group, name="operation")
