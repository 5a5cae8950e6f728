"""Lot factory: the quantity and price an asset moves by for one operation."""

import logging
from decimal import ROUND_HALF_UP
from typing import Optional

from b3ledger.domain.classification import AssetTypeClassifier
from b3ledger.domain.entities import AssetLot, Transaction
from b3ledger.domain.operation import Operation
from b3ledger.domain.value_objects import MONEY_PLACES

logger = logging.getLogger(__name__)


class LotFactory:
    """Build AssetLot entities for non-profit transactions."""

    def __init__(self, classifier: Optional[AssetTypeClassifier] = None):
        self.classifier = classifier or AssetTypeClassifier()

    def create_lot(
        self,
        operation: Operation,
        transaction: Transaction,
        ticker: str,
        fixed_income: bool,
    ) -> AssetLot:
        """Create the lot for an operation's transaction.

        The lot total is unit price x quantity, independent of the value
        stated on the statement row.

        Args:
            operation: A validated operation
            transaction: The transaction built for it
            ticker: Ticker of the asset the lot belongs to
            fixed_income: Whether the asset is a fixed income product

        Returns:
            AssetLot with no storage references attached yet
        """
        if fixed_income:
            asset_type = self.classifier.fixed_income_type(operation.product).value
        else:
            asset_type = self.classifier.variable_income_type(ticker, operation.product).value
        logger.debug("Lot for %s classified as %s", ticker, asset_type)

        quantity = operation.quantity.value
        unit_price = operation.unit_price.value
        return AssetLot(
            purchase_date=operation.date,
            quantity=quantity,
            unit_price=unit_price,
            total=(unit_price * quantity).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP),
            asset_type=asset_type,
            transaction_type=transaction.transaction_type,
        )
