"""Tests for database mappers."""

import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from b3ledger.database.models import (
    FinancialAsset as ORMFinancialAsset,
    JobExecution as ORMJobExecution,
    Operation as ORMOperation,
    Transaction as ORMTransaction,
)
from b3ledger.database.mappers import (
    asset_to_domain,
    job_execution_to_domain,
    operation_to_columns,
    operation_to_domain,
    transaction_to_domain,
)
from b3ledger.domain.entities import (
    FinancialAsset,
    JobExecution,
    JobStatus,
    MovementType,
    Transaction,
    TransactionType,
)
from b3ledger.domain.errors import InvalidOperationError
from b3ledger.domain.operation import Operation
from b3ledger.domain.value_objects import Money, UserId


def _orm_operation(**overrides):
    fields = dict(
        id=1,
        direction="Debito",
        date=date(2024, 3, 15),
        movement="Compra / Venda",
        product="PETR4 - PETROBRAS PN",
        institution="XP",
        quantity=Decimal("100.00000000"),
        unit_price=Decimal("10.50"),
        value=Decimal("1050.00"),
        duplicate=False,
        dimensioned=True,
        original_id="B3-1",
        deleted=False,
        user_id=4,
    )
    fields.update(overrides)
    return ORMOperation(**fields)


class TestOperationMapper:
    """Tests for Operation mapper."""

    def test_operation_to_domain(self):
        """Test converting ORM Operation to domain Operation."""
        domain_operation = operation_to_domain(_orm_operation())

        assert isinstance(domain_operation, Operation)
        assert domain_operation.id == 1
        assert domain_operation.user_id == UserId(4)
        assert domain_operation.value == Money("1050.00")
        assert domain_operation.dimensioned
        assert domain_operation.original_id == "B3-1"

    def test_corrupt_row_is_rejected(self):
        """Test that a stored row breaking an invariant does not load silently."""
        with pytest.raises(InvalidOperationError):
            operation_to_domain(_orm_operation(value=Decimal("999.00")))

    def test_operation_to_columns(self):
        """Test flattening a domain Operation to column values."""
        columns = operation_to_columns(operation_to_domain(_orm_operation()))

        assert columns["quantity"] == Decimal("100")
        assert columns["user_id"] == 4
        assert columns["dimensioned"] is True
        assert "id" not in columns


class TestAssetMapper:
    """Tests for FinancialAsset mapper."""

    def test_asset_to_domain(self):
        orm_asset = ORMFinancialAsset(
            id=2,
            portfolio_id=1,
            ticker="CDB - CDBC247FRL8",
            product_name="CDB - CDBC247FRL8 - BANCO XP",
            fixed_income=True,
            deleted=False,
            created_at=datetime.now(UTC),
        )
        asset = asset_to_domain(orm_asset)

        assert isinstance(asset, FinancialAsset)
        assert asset.ticker == "CDB - CDBC247FRL8"
        assert asset.fixed_income


class TestTransactionMapper:
    """Tests for Transaction mapper."""

    def test_transaction_to_domain(self):
        """Test that stored strings come back as enums."""
        orm_transaction = ORMTransaction(
            id=3,
            operation_id=1,
            portfolio_id=1,
            institution_id=1,
            asset_id=None,
            date=date(2024, 3, 20),
            direction="Entrada",
            quantity=Decimal("200"),
            unit_price=Decimal("0.15"),
            total_value=Decimal("30.00"),
            transaction_type="LUCRO_DIVIDENDO",
            movement_type="CREDITO",
            deleted=False,
            created_at=datetime.now(UTC),
        )
        transaction = transaction_to_domain(orm_transaction)

        assert isinstance(transaction, Transaction)
        assert transaction.transaction_type is TransactionType.LUCRO_DIVIDENDO
        assert transaction.movement_type is MovementType.CREDITO
        assert transaction.asset_id is None


class TestJobExecutionMapper:
    """Tests for JobExecution mapper."""

    def test_job_execution_to_domain(self):
        orm_execution = ORMJobExecution(
            id=5,
            job_name="consolidate-operations",
            job_key="tok",
            status="FAILED",
            start_time=datetime.now(UTC),
            end_time=None,
            read_count=10,
            write_count=0,
            skip_count=0,
            chunk_count=0,
            exit_message="boom",
        )
        execution = job_execution_to_domain(orm_execution)

        assert isinstance(execution, JobExecution)
        assert execution.status is JobStatus.FAILED
        assert execution.exit_message == "boom"
