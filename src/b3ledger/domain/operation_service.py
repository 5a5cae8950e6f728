"""Operation domain service."""

import logging
from typing import Optional

from b3ledger.database.base import Database
from b3ledger.domain.consolidation import AggregateConsolidator
from b3ledger.domain.errors import (
    ConflictError,
    NotFoundError,
    duplicate_original_id,
    operation_not_found,
)
from b3ledger.domain.operation import Operation

logger = logging.getLogger(__name__)


class OperationService:
    """Service for registering and querying operations."""

    def __init__(
        self,
        db: Database,
        consolidator: Optional[AggregateConsolidator] = None,
    ):
        """Initialize operation service.

        Args:
            db: Database instance
            consolidator: Aggregate consolidator (built on db if None)
        """
        self.db = db
        self.consolidator = consolidator or AggregateConsolidator(db)

    def register(self, operation: Operation) -> Operation:
        """Save an operation and consolidate it.

        The operation is committed before consolidation starts. When
        consolidation fails, the operation stays pending for the batch
        pipeline and the error is raised to the caller.

        Args:
            operation: Validated operation without an id

        Returns:
            The saved operation; dimensioned if it was consolidated

        Raises:
            ConflictError: If a non-duplicate operation with the same original id
                already exists for the user, including one saved concurrently
            InvalidTransactionError: If the operation cannot be classified
            PersistenceError: If the aggregate could not be written
        """
        if operation.original_id is not None and not operation.duplicate:
            if self.db.operation_exists_by_original_id(operation.original_id, int(operation.user_id)):
                raise ConflictError(
                    duplicate_original_id(operation.original_id, int(operation.user_id)),
                    "operation.duplicate_original_id",
                    original_id=operation.original_id,
                    user_id=int(operation.user_id),
                )

        saved = self.db.save_operation(operation)
        if saved.duplicate:
            logger.info("Stored operation %s as a duplicate", saved.id)
            return saved

        try:
            result = self.consolidator.execute(saved)
        except ValueError as e:
            logger.warning("Operation %s saved but left pending: %s", saved.id, e)
            raise
        if result is None:
            # Consolidated by another caller in the meantime
            return self.db.get_operation(saved.id)
        return result.operation

    def get_operation(self, operation_id: int) -> Optional[Operation]:
        """Get operation by ID.

        Args:
            operation_id: Operation ID

        Returns:
            Operation or None if not found
        """
        return self.db.get_operation(operation_id)

    def list_operations(
        self,
        user_id: Optional[int] = None,
        include_duplicates: bool = True,
        include_deleted: bool = False,
    ) -> list[Operation]:
        """List operations with optional filters.

        Args:
            user_id: Optional owning user filter
            include_duplicates: Include operations flagged duplicate
            include_deleted: Include soft-deleted operations

        Returns:
            List of operations in ascending id order
        """
        return self.db.list_operations(
            user_id=user_id,
            include_duplicates=include_duplicates,
            include_deleted=include_deleted,
        )

    def count_operations(
        self,
        user_id: Optional[int] = None,
        include_duplicates: bool = True,
        include_deleted: bool = False,
    ) -> int:
        """Count operations with the same filters as list_operations."""
        return self.db.count_operations(
            user_id=user_id,
            include_duplicates=include_duplicates,
            include_deleted=include_deleted,
        )

    def delete_operation(self, operation_id: int) -> Operation:
        """Soft delete an operation.

        Args:
            operation_id: Operation ID

        Returns:
            The operation flagged deleted

        Raises:
            NotFoundError: If operation doesn't exist
            InvalidOperationError: If the operation is marked duplicate
        """
        operation = self.db.get_operation(operation_id)
        if operation is None:
            raise NotFoundError(
                operation_not_found(operation_id), "operation.not_found", operation_id=operation_id
            )
        deleted = operation.marked_deleted()
        self.db.mark_operation_deleted(operation_id)
        return deleted
