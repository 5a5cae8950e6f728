"""Integration tests for end-to-end workflows."""

from datetime import date
from decimal import Decimal

from b3ledger.cli.main import cli
from b3ledger.domain.entities import TransactionType
from b3ledger.domain.operation import Operation
from b3ledger.domain.portfolio import PortfolioService

from conftest import build_xlsx


def test_full_workflow(cli_runner, temp_db, statement_rows, tmp_path):
    """Test complete workflow: import → re-import → pending batch → portfolio."""
    statement = tmp_path / "movimentacao.xlsx"
    statement.write_bytes(build_xlsx(statement_rows))

    # Step 1: Import the statement
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "import", str(statement), "--user", "1"]
    )
    assert result.exit_code == 0
    assert "Successful: 3 rows" in result.output

    # Step 2: Import it again; every row is a duplicate
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "import", str(statement), "--user", "1"]
    )
    assert result.exit_code == 0
    assert "Duplicates: 3 rows" in result.output

    # Step 3: An operation saved without consolidation is picked up by the batch
    temp_db.save_operation(
        Operation(
            date=date(2024, 4, 1),
            quantity=Decimal("10"),
            unit_price=Decimal("35"),
            value=Decimal("350"),
            user_id=1,
            direction="Debito",
            movement="Compra / Venda",
            product="VALE3 - VALE ON",
            institution="XP INVESTIMENTOS",
        )
    )
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "batch", "run"])
    assert result.exit_code == 0
    assert "COMPLETED" in result.output
    assert "Written: 1" in result.output

    # Step 4: The portfolio holds PETR4 and VALE3; the dividend created no asset
    portfolio = PortfolioService(temp_db)
    holdings = {h.asset.ticker: h for h in portfolio.get_holdings(1)}
    assert set(holdings) == {"PETR4", "VALE3"}
    assert holdings["PETR4"].transaction_count == 2
    assert holdings["PETR4"].quantity == Decimal("50")
    assert holdings["PETR4"].invested == Decimal("525.00")
    assert holdings["VALE3"].invested == Decimal("350.00")

    transactions = portfolio.list_transactions(1)
    assert len(transactions) == 4
    assert [t.transaction_type for t in transactions if t.asset_id is None] == [
        TransactionType.LUCRO_DIVIDENDO
    ]

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "portfolio", "show", "--user", "1"]
    )
    assert result.exit_code == 0
    assert "VALE3" in result.output
    assert "income without asset: 1" in result.output
