"""Aggregate consolidation: attach an operation's transaction to its portfolio."""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from b3ledger.database.base import Database
from b3ledger.domain.classification import ProductParser
from b3ledger.domain.entities import (
    AssetLot,
    FinancialAsset,
    Institution,
    Portfolio,
    Transaction,
)
from b3ledger.domain.errors import (
    InvalidTransactionError,
    MissingOwnerError,
    PersistenceError,
    ValidationError,
)
from b3ledger.domain.lot_factory import LotFactory
from b3ledger.domain.operation import Operation
from b3ledger.domain.transaction_factory import TransactionFactory, is_profit_transaction
from b3ledger.utils.locks import KeyedLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsolidationPlan:
    """Everything needed to persist one operation's aggregate, built without I/O.

    ``ticker`` and ``lot`` are None for profit transactions, which never
    create an asset.
    """

    operation: Operation
    transaction: Transaction
    ticker: Optional[str] = None
    fixed_income: bool = False
    lot: Optional[AssetLot] = None

    @property
    def creates_asset(self) -> bool:
        return self.ticker is not None


@dataclass(frozen=True)
class ConsolidationResult:
    """Persisted aggregate of one consolidated operation."""

    operation: Operation
    transaction: Transaction
    portfolio: Portfolio
    institution: Institution
    asset: Optional[FinancialAsset] = None
    lot: Optional[AssetLot] = None


class AggregateConsolidator:
    """Consolidate operations into the user's portfolio aggregate.

    Portfolio and institution lookups go through atomic get-or-create calls,
    and are additionally serialized per key within the process.
    """

    portfolio_locks = KeyedLock()
    institution_locks = KeyedLock()

    def __init__(
        self,
        db: Database,
        factory: Optional[TransactionFactory] = None,
        product_parser: Optional[ProductParser] = None,
        lot_factory: Optional[LotFactory] = None,
    ):
        """Initialize consolidator.

        Args:
            db: Database instance
            factory: Transaction factory (default factory if None)
            product_parser: Ticker extractor (default parser if None)
            lot_factory: Asset lot builder (default factory if None)
        """
        self.db = db
        self.factory = factory or TransactionFactory()
        self.product_parser = product_parser or ProductParser()
        self.lot_factory = lot_factory or LotFactory()

    def execute(self, operation: Operation) -> Optional[ConsolidationResult]:
        """Consolidate one operation.

        Duplicate and already consolidated operations are skipped with no
        side effects. The stored row decides, not the given snapshot, so an
        operation consolidated elsewhere in the meantime is skipped too.

        Args:
            operation: A saved operation

        Returns:
            ConsolidationResult, or None when the operation was skipped

        Raises:
            MissingOwnerError: If the operation has no owning user
            InvalidTransactionError: If the operation cannot be classified
            PersistenceError: If writing the aggregate failed (nothing was written)
        """
        if operation.duplicate:
            logger.debug("Skipping duplicate operation %s", operation.id)
            return None
        if operation.dimensioned:
            logger.debug("Operation %s is already consolidated", operation.id)
            return None
        return self.persist(self.plan(operation))

    def plan(self, operation: Operation) -> ConsolidationPlan:
        """Classify an operation and decide whether it needs an asset.

        Raises:
            MissingOwnerError: If the operation has no owning user
            InvalidTransactionError: If the operation cannot be classified
        """
        if operation.user_id is None:
            raise MissingOwnerError(f"Operation {operation.id} has no owning user")

        transaction = self.factory.create_transaction(operation)
        if not operation.institution or not operation.institution.strip():
            raise InvalidTransactionError(
                f"Operation {operation.id} has no institution",
                "transaction.missing_institution",
                operation_id=operation.id,
            )
        if is_profit_transaction(transaction):
            return ConsolidationPlan(operation=operation, transaction=transaction)

        ticker = self.product_parser.extract_ticker(operation.product)
        if not ticker:
            raise InvalidTransactionError(
                f"Operation {operation.id} has no product to hold",
                "transaction.missing_product",
                operation_id=operation.id,
            )
        fixed_income = self.product_parser.is_fixed_income(operation.product)
        return ConsolidationPlan(
            operation=operation,
            transaction=transaction,
            ticker=ticker,
            fixed_income=fixed_income,
            lot=self.lot_factory.create_lot(operation, transaction, ticker, fixed_income),
        )

    def persist(self, plan: ConsolidationPlan) -> Optional[ConsolidationResult]:
        """Write a planned aggregate in one unit of work.

        The operation is claimed first: it is flagged dimensioned only if the
        stored row is still pending, and a plan whose operation was claimed by
        another caller is dropped with nothing written. The user, portfolio,
        institution, user-institution link, asset and lot (for non-profit
        transactions) and transaction are then written in the same unit.

        Returns:
            ConsolidationResult, or None when the operation was no longer pending

        Raises:
            PersistenceError: If any write failed; the unit is rolled back
        """
        operation = plan.operation
        if operation.id is None:
            raise ValidationError(
                "Operation must be saved before it is consolidated",
                "consolidation.unsaved_operation",
            )
        user_id = int(operation.user_id)
        institution_name = operation.institution.strip()

        try:
            with self.portfolio_locks.hold(user_id), self.institution_locks.hold(institution_name):
                with self.db.unit_of_work():
                    if not self.db.claim_operation_for_consolidation(operation.id):
                        logger.info(
                            "Operation %s is no longer pending; skipping consolidation",
                            operation.id,
                        )
                        return None

                    self.db.get_or_create_user(user_id)
                    portfolio = self.db.get_or_create_portfolio(user_id)
                    institution = self.db.get_or_create_institution(institution_name)
                    self.db.link_user_institution(user_id, institution.id)

                    asset = None
                    if plan.creates_asset:
                        asset = self.db.get_or_create_asset(
                            portfolio.id,
                            plan.ticker,
                            product_name=operation.product,
                            fixed_income=plan.fixed_income,
                        )

                    transaction = self.db.save_transaction(
                        replace(
                            plan.transaction,
                            operation_id=operation.id,
                            portfolio_id=portfolio.id,
                            institution_id=institution.id,
                            asset_id=asset.id if asset else None,
                        )
                    )

                    lot = None
                    if asset is not None and plan.lot is not None:
                        lot = self.db.save_lot(
                            replace(plan.lot, asset_id=asset.id, transaction_id=transaction.id)
                        )
        except PersistenceError:
            raise
        except Exception as e:
            logger.error("Consolidation of operation %s rolled back: %s", operation.id, e)
            raise PersistenceError(
                f"Could not persist aggregate for operation {operation.id}: {e}",
                "consolidation.persistence_failed",
                operation_id=operation.id,
                reason=str(e),
            ) from e

        logger.info(
            "Consolidated operation %s as %s (asset %s)",
            operation.id,
            transaction.transaction_type.value,
            plan.ticker or "-",
        )
        return ConsolidationResult(
            operation=operation.marked_dimensioned(),
            transaction=transaction,
            portfolio=portfolio,
            institution=institution,
            asset=asset,
            lot=lot,
        )
