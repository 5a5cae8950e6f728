"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from b3ledger.domain.entities import (
    AssetLot,
    FinancialAsset,
    HoldingSummary,
    Institution,
    JobExecution,
    JobStatus,
    Portfolio,
    Transaction,
    User,
)
from b3ledger.domain.operation import Operation


class Database(ABC):
    """Abstract database interface for b3ledger.

    Every write method commits on its own when called outside a unit of work.
    Inside ``unit_of_work()`` writes are only flushed, and the whole unit is
    committed or rolled back together when the outermost block exits.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager:
        """Return a context manager grouping writes into one atomic unit.

        Units nest: only the outermost one commits. Any exception rolls the
        outermost unit back and propagates.
        """
        pass

    # Operation operations
    @abstractmethod
    def save_operation(self, operation: Operation) -> Operation:
        """Insert or update an operation. Returns it with its id assigned."""
        pass

    @abstractmethod
    def get_operation(self, operation_id: int) -> Optional[Operation]:
        """Get operation by ID."""
        pass

    @abstractmethod
    def operation_exists_by_original_id(self, original_id: str, user_id: int) -> bool:
        """Check if a non-duplicate operation with this source id exists for the user."""
        pass

    @abstractmethod
    def find_operation_by_original_id(self, original_id: str, user_id: int) -> Optional[Operation]:
        """Get the first non-duplicate operation with this source id for the user."""
        pass

    @abstractmethod
    def list_operations(
        self,
        user_id: Optional[int] = None,
        include_duplicates: bool = True,
        include_deleted: bool = False,
    ) -> list[Operation]:
        """List operations in ascending id order with optional filters."""
        pass

    @abstractmethod
    def count_operations(
        self,
        user_id: Optional[int] = None,
        include_duplicates: bool = True,
        include_deleted: bool = False,
    ) -> int:
        """Count operations with the same filters as list_operations."""
        pass

    @abstractmethod
    def list_pending_operations(self, after_id: int, limit: int) -> list[Operation]:
        """List operations waiting for consolidation.

        Pending means not dimensioned, not duplicate and not deleted. Rows are
        returned in ascending id order starting after ``after_id``.
        """
        pass

    @abstractmethod
    def has_pending_operations_after(self, after_id: int) -> bool:
        """Check if any pending operation has an id greater than after_id."""
        pass

    @abstractmethod
    def count_pending_operations(self) -> int:
        """Count operations waiting for consolidation."""
        pass

    @abstractmethod
    def mark_operation_dimensioned(self, operation_id: int) -> None:
        """Flag an operation as consolidated."""
        pass

    @abstractmethod
    def claim_operation_for_consolidation(self, operation_id: int) -> bool:
        """Flag a pending operation as consolidated, if nobody else did first.

        The check and the update are one statement, so of two callers racing
        for the same operation exactly one gets True. Duplicate, deleted,
        already consolidated and missing operations all return False.
        """
        pass

    @abstractmethod
    def mark_operation_deleted(self, operation_id: int) -> None:
        """Soft delete an operation."""
        pass

    # Aggregate operations (idempotent by natural key)
    @abstractmethod
    def get_or_create_user(self, user_id: int) -> User:
        """Get the user with this id, creating it if needed."""
        pass

    @abstractmethod
    def get_or_create_portfolio(self, user_id: int) -> Portfolio:
        """Get the portfolio of a user, creating it if needed."""
        pass

    @abstractmethod
    def get_portfolio_by_user(self, user_id: int) -> Optional[Portfolio]:
        """Get the portfolio of a user, if any."""
        pass

    @abstractmethod
    def get_or_create_institution(self, name: str) -> Institution:
        """Get the institution with this name, creating it if needed."""
        pass

    @abstractmethod
    def link_user_institution(self, user_id: int, institution_id: int) -> None:
        """Associate a user with an institution. Linking twice is a no-op."""
        pass

    @abstractmethod
    def list_user_institutions(self, user_id: int) -> list[Institution]:
        """List the institutions linked to a user, ordered by name."""
        pass

    @abstractmethod
    def get_or_create_asset(
        self,
        portfolio_id: int,
        ticker: str,
        product_name: Optional[str] = None,
        fixed_income: bool = False,
    ) -> FinancialAsset:
        """Get the asset of a portfolio with this ticker, creating it if needed."""
        pass

    @abstractmethod
    def list_assets(self, portfolio_id: int) -> list[FinancialAsset]:
        """List the assets of a portfolio, ordered by ticker."""
        pass

    # Transaction operations
    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> Transaction:
        """Insert a transaction. Returns it with its id assigned."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        portfolio_id: Optional[int] = None,
        asset_id: Optional[int] = None,
        operation_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, in ascending id order."""
        pass

    @abstractmethod
    def save_lot(self, lot: AssetLot) -> AssetLot:
        """Insert an asset lot. Returns it with its id assigned."""
        pass

    @abstractmethod
    def list_lots(self, asset_id: int) -> list[AssetLot]:
        """List the lots of an asset in ascending id order."""
        pass

    @abstractmethod
    def get_holdings(self, portfolio_id: int) -> list[HoldingSummary]:
        """Summarize the position of every asset of a portfolio, from its lots."""
        pass

    # Job execution registry
    @abstractmethod
    def create_job_execution(self, job_name: str, job_key: str, start_time: datetime) -> JobExecution:
        """Record a new execution in STARTED state."""
        pass

    @abstractmethod
    def update_job_execution(
        self,
        execution_id: int,
        status: JobStatus,
        end_time: Optional[datetime] = None,
        read_count: int = 0,
        write_count: int = 0,
        skip_count: int = 0,
        chunk_count: int = 0,
        exit_message: Optional[str] = None,
    ) -> JobExecution:
        """Store the outcome and counters of an execution."""
        pass

    @abstractmethod
    def find_job_executions(self, job_name: str, job_key: Optional[str] = None) -> list[JobExecution]:
        """List executions of a job, optionally for one parameter token, oldest first."""
        pass
