"""Transaction factory: turn a validated operation into a typed transaction."""

import logging
from decimal import ROUND_HALF_UP
from typing import Optional

from b3ledger.domain.classification import (
    MovementTypeResolver,
    TransactionTypeMapper,
    normalize_direction,
)
from b3ledger.domain.entities import PROFIT_TRANSACTION_TYPES, Transaction
from b3ledger.domain.errors import InvalidTransactionError, unclassifiable_operation
from b3ledger.domain.operation import Operation
from b3ledger.domain.value_objects import MONEY_PLACES

logger = logging.getLogger(__name__)


def is_profit_transaction(transaction: Transaction) -> bool:
    """Return True for income events (dividends, interest, other yields).

    Profit transactions never create a financial asset.
    """
    return transaction.transaction_type in PROFIT_TRANSACTION_TYPES


class TransactionFactory:
    """Build Transaction entities from operations."""

    def __init__(
        self,
        movement_resolver: Optional[MovementTypeResolver] = None,
        type_mapper: Optional[TransactionTypeMapper] = None,
    ):
        """Initialize the factory.

        Args:
            movement_resolver: Resolver for the movement type (default resolver if None)
            type_mapper: Mapper for the transaction type (default mapper if None)
        """
        self.movement_resolver = movement_resolver or MovementTypeResolver()
        self.type_mapper = type_mapper or TransactionTypeMapper()

    def create_transaction(self, operation: Operation) -> Transaction:
        """Create a transaction for an operation.

        Args:
            operation: A validated operation

        Returns:
            Transaction with no storage references attached yet

        Raises:
            InvalidTransactionError: If the direction/movement combination is not recognized
        """
        movement_type = self.movement_resolver.resolve(operation.direction, operation.movement)
        if movement_type is None:
            raise InvalidTransactionError(
                unclassifiable_operation(operation.direction, operation.movement),
                "transaction.unclassifiable",
                direction=operation.direction,
                movement=operation.movement,
            )
        transaction_type = self.type_mapper.map(operation.direction, operation.movement)

        total_value = operation.computed_value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)
        transaction = Transaction(
            operation_id=operation.id,
            date=operation.date,
            direction=normalize_direction(operation.direction),
            quantity=operation.quantity.value,
            unit_price=operation.unit_price.value,
            total_value=total_value,
            transaction_type=transaction_type,
            movement_type=movement_type,
        )
        logger.debug(
            "Built %s transaction (movement %s) for operation %s",
            transaction_type.value,
            movement_type.value,
            operation.id,
        )
        return transaction
