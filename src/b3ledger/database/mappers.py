"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so schema changes stay out of the
domain entities.
"""

from b3ledger.domain import entities as domain
from b3ledger.domain.operation import Operation as DomainOperation
from b3ledger.database.models import (
    AssetLot as ORMAssetLot,
    FinancialAsset as ORMFinancialAsset,
    Institution as ORMInstitution,
    JobExecution as ORMJobExecution,
    Operation as ORMOperation,
    Portfolio as ORMPortfolio,
    Transaction as ORMTransaction,
    User as ORMUser,
)


def operation_to_domain(orm_operation: ORMOperation) -> DomainOperation:
    """Convert SQLAlchemy Operation model to domain Operation entity.

    The domain constructor re-validates the stored row.
    """
    return DomainOperation(
        id=orm_operation.id,
        direction=orm_operation.direction,
        date=orm_operation.date,
        movement=orm_operation.movement,
        product=orm_operation.product,
        institution=orm_operation.institution,
        quantity=orm_operation.quantity,
        unit_price=orm_operation.unit_price,
        value=orm_operation.value,
        duplicate=orm_operation.duplicate,
        dimensioned=orm_operation.dimensioned,
        original_id=orm_operation.original_id,
        deleted=orm_operation.deleted,
        user_id=orm_operation.user_id,
    )


def operation_to_columns(operation: DomainOperation) -> dict:
    """Flatten a domain Operation into column values."""
    return {
        "direction": operation.direction,
        "date": operation.date,
        "movement": operation.movement,
        "product": operation.product,
        "institution": operation.institution,
        "quantity": operation.quantity.value,
        "unit_price": operation.unit_price.value,
        "value": operation.value.value,
        "duplicate": operation.duplicate,
        "dimensioned": operation.dimensioned,
        "original_id": operation.original_id,
        "deleted": operation.deleted,
        "user_id": int(operation.user_id),
    }


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(id=orm_user.id, created_at=orm_user.created_at)


def portfolio_to_domain(orm_portfolio: ORMPortfolio) -> domain.Portfolio:
    """Convert SQLAlchemy Portfolio model to domain Portfolio entity."""
    return domain.Portfolio(
        id=orm_portfolio.id,
        user_id=orm_portfolio.user_id,
        created_at=orm_portfolio.created_at,
    )


def institution_to_domain(orm_institution: ORMInstitution) -> domain.Institution:
    """Convert SQLAlchemy Institution model to domain Institution entity."""
    return domain.Institution(
        id=orm_institution.id,
        name=orm_institution.name,
        created_at=orm_institution.created_at,
    )


def asset_to_domain(orm_asset: ORMFinancialAsset) -> domain.FinancialAsset:
    """Convert SQLAlchemy FinancialAsset model to domain FinancialAsset entity."""
    return domain.FinancialAsset(
        id=orm_asset.id,
        portfolio_id=orm_asset.portfolio_id,
        ticker=orm_asset.ticker,
        product_name=orm_asset.product_name,
        fixed_income=orm_asset.fixed_income,
        deleted=orm_asset.deleted,
        created_at=orm_asset.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        operation_id=orm_transaction.operation_id,
        portfolio_id=orm_transaction.portfolio_id,
        institution_id=orm_transaction.institution_id,
        asset_id=orm_transaction.asset_id,
        date=orm_transaction.date,
        direction=orm_transaction.direction,
        quantity=orm_transaction.quantity,
        unit_price=orm_transaction.unit_price,
        total_value=orm_transaction.total_value,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        movement_type=domain.MovementType(orm_transaction.movement_type),
        deleted=orm_transaction.deleted,
        created_at=orm_transaction.created_at,
    )


def lot_to_domain(orm_lot: ORMAssetLot) -> domain.AssetLot:
    """Convert SQLAlchemy AssetLot model to domain AssetLot entity."""
    return domain.AssetLot(
        id=orm_lot.id,
        asset_id=orm_lot.asset_id,
        transaction_id=orm_lot.transaction_id,
        purchase_date=orm_lot.purchase_date,
        quantity=orm_lot.quantity,
        unit_price=orm_lot.unit_price,
        total=orm_lot.total,
        asset_type=orm_lot.asset_type,
        transaction_type=domain.TransactionType(orm_lot.transaction_type),
        created_at=orm_lot.created_at,
    )


def job_execution_to_domain(orm_execution: ORMJobExecution) -> domain.JobExecution:
    """Convert SQLAlchemy JobExecution model to domain JobExecution entity."""
    return domain.JobExecution(
        id=orm_execution.id,
        job_name=orm_execution.job_name,
        job_key=orm_execution.job_key,
        status=domain.JobStatus(orm_execution.status),
        start_time=orm_execution.start_time,
        end_time=orm_execution.end_time,
        read_count=orm_execution.read_count,
        write_count=orm_execution.write_count,
        skip_count=orm_execution.skip_count,
        chunk_count=orm_execution.chunk_count,
        exit_message=orm_execution.exit_message,
    )
