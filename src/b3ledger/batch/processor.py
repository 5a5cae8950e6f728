"""Per-item processing: classify a pending operation into a consolidation plan."""

import logging
from typing import Optional

from b3ledger.domain.consolidation import AggregateConsolidator, ConsolidationPlan
from b3ledger.domain.errors import InvalidTransactionError, MissingOwnerError
from b3ledger.domain.operation import Operation

logger = logging.getLogger(__name__)


class OperationItemProcessor:
    """Turn an operation into a ConsolidationPlan without touching storage.

    Returning None filters the item out of the chunk; the step counts it as
    skipped.
    """

    def __init__(self, consolidator: AggregateConsolidator):
        self.consolidator = consolidator

    def process(self, operation: Operation) -> Optional[ConsolidationPlan]:
        if operation.duplicate or operation.dimensioned:
            return None
        try:
            return self.consolidator.plan(operation)
        except (InvalidTransactionError, MissingOwnerError) as e:
            logger.warning("Skipping operation %s: %s", operation.id, e)
            return None
