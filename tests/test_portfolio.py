"""Tests for portfolio queries."""

from datetime import date, datetime
from decimal import Decimal

from b3ledger.domain.entities import AssetLot, FinancialAsset, HoldingSummary, TransactionType


def lot(transaction_type, quantity, unit_price):
    quantity = Decimal(quantity)
    unit_price = Decimal(unit_price)
    return AssetLot(
        purchase_date=date(2024, 3, 15),
        quantity=quantity,
        unit_price=unit_price,
        total=(quantity * unit_price).quantize(Decimal("0.01")),
        asset_type="ACAO_ON",
        transaction_type=transaction_type,
    )


ASSET = FinancialAsset(
    id=1,
    portfolio_id=1,
    ticker="VALE3",
    product_name="VALE3 - VALE ON",
    fixed_income=False,
    deleted=False,
    created_at=datetime(2024, 3, 15),
)


def test_no_portfolio_before_consolidation(portfolio_service):
    assert portfolio_service.get_portfolio(1) is None
    assert portfolio_service.get_holdings(1) == []
    assert portfolio_service.list_transactions(1) == []
    assert portfolio_service.list_institutions(1) == []


def test_one_portfolio_per_user(operation_service, portfolio_service, make_operation):
    operation_service.register(make_operation())
    operation_service.register(make_operation(institution="BTG PACTUAL"))

    portfolio = portfolio_service.get_portfolio(1)

    assert portfolio.user_id == 1
    assert [inst.name for inst in portfolio_service.list_institutions(1)] == [
        "BTG PACTUAL",
        "XP INVESTIMENTOS CCTVM S/A",
    ]
    assert len(portfolio_service.list_transactions(1)) == 2


def test_holdings_per_asset(operation_service, portfolio_service, make_operation):
    operation_service.register(make_operation())
    operation_service.register(
        make_operation(product="VALE3 - VALE ON", quantity=Decimal("10"), unit_price=Decimal("60"), value=Decimal("600"))
    )
    operation_service.register(
        make_operation(
            direction="Credito",
            movement="Dividendo",
            product="VALE3 - VALE ON",
            quantity=Decimal("10"),
            unit_price=Decimal("2.5"),
            value=Decimal("25"),
        )
    )

    holdings = portfolio_service.get_holdings(1)

    assert [(h.asset.ticker, h.transaction_count, h.quantity, h.invested) for h in holdings] == [
        ("PETR4", 1, Decimal("100"), Decimal("1050.00")),
        ("VALE3", 1, Decimal("10"), Decimal("600.00")),
    ]
    assert [h.asset_type for h in holdings] == ["ACAO_PN", "ACAO_ON"]
    assert len(portfolio_service.list_transactions(1)) == 3


def test_transactions_by_asset(operation_service, portfolio_service, make_operation):
    operation_service.register(make_operation())
    operation_service.register(
        make_operation(product="VALE3 - VALE ON", quantity=Decimal("10"), unit_price=Decimal("60"), value=Decimal("600"))
    )
    vale = [h.asset for h in portfolio_service.get_holdings(1) if h.asset.ticker == "VALE3"][0]

    transactions = portfolio_service.list_transactions(1, asset_id=vale.id)

    assert [txn.total_value for txn in transactions] == [Decimal("600.00")]


def test_holding_position_uses_average_purchase_price():
    lots = [
        lot(TransactionType.ENTRADA, "10", "60"),
        lot(TransactionType.ENTRADA, "30", "40"),
        lot(TransactionType.VENDA, "20", "70"),
        lot(TransactionType.TAXA, "1", "5"),
    ]

    holding = HoldingSummary.from_lots(ASSET, 4, lots)

    assert holding.quantity == Decimal("20")
    assert holding.average_price == Decimal("45.00")
    assert holding.invested == Decimal("900.00")
    assert holding.asset_type == "ACAO_ON"


def test_sold_out_holding_has_nothing_invested():
    lots = [lot(TransactionType.ENTRADA, "10", "60"), lot(TransactionType.VENDA, "10", "75")]

    holding = HoldingSummary.from_lots(ASSET, 2, lots)

    assert holding.quantity == Decimal("0")
    assert holding.invested == Decimal("0.00")


def test_holding_without_lots():
    holding = HoldingSummary.from_lots(ASSET, 0, [])

    assert holding.quantity == Decimal("0")
    assert holding.average_price == Decimal("0.00")
    assert holding.asset_type is None
