"""Chunk writer: persist every plan of a chunk in one unit of work."""

import logging

from b3ledger.batch.errors import ChunkWriteError
from b3ledger.database.base import Database
from b3ledger.domain.consolidation import (
    AggregateConsolidator,
    ConsolidationPlan,
    ConsolidationResult,
)

logger = logging.getLogger(__name__)


class FinancialAssetItemWriter:
    """Write consolidated aggregates chunk by chunk."""

    def __init__(self, db: Database, consolidator: AggregateConsolidator):
        self.db = db
        self.consolidator = consolidator

    def write(self, chunk: list[ConsolidationPlan]) -> list[ConsolidationResult]:
        """Persist a chunk atomically.

        Plans whose operation was consolidated elsewhere after it was read are
        dropped; only the aggregates actually written are returned.

        Raises:
            ChunkWriteError: If any plan failed; the whole chunk was rolled back
        """
        if not chunk:
            return []
        try:
            with self.db.unit_of_work():
                results = [self.consolidator.persist(plan) for plan in chunk]
            results = [result for result in results if result is not None]
        except Exception as e:
            ids = [plan.operation.id for plan in chunk]
            logger.error("Chunk with operations %s rolled back: %s", ids, e)
            raise ChunkWriteError(f"Failed to write chunk of {len(chunk)} items: {e}") from e

        logger.debug("Wrote chunk of %d items", len(results))
        return results
