"""Batch trigger surface: run the consolidation job and report a structured result."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from typing import Callable, Optional

from b3ledger.batch.errors import (
    JobAlreadyRunningError,
    JobInstanceAlreadyCompleteError,
    JobRestartError,
)
from b3ledger.batch.job import DEFAULT_CHUNK_SIZE, Job, JobRunner, consolidation_job
from b3ledger.database.base import Database
from b3ledger.domain.consolidation import AggregateConsolidator
from b3ledger.domain.entities import JobExecution, JobStatus

logger = logging.getLogger(__name__)

JOB_NAME = "consolidate-operations"


class BatchRunStatus(str, Enum):
    """Outcome of one batch trigger."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    ALREADY_RUNNING = "ALREADY_RUNNING"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    RESTART_ERROR = "RESTART_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


@dataclass(frozen=True)
class BatchRunResult:
    """Structured result of a batch trigger."""

    status: BatchRunStatus
    token: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    execution: Optional[JobExecution] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is BatchRunStatus.COMPLETED


class BatchService:
    """Trigger the consolidation job and map every outcome to a BatchRunStatus."""

    def __init__(
        self,
        db: Database,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        consolidator: Optional[AggregateConsolidator] = None,
        runner: Optional[JobRunner] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize batch service.

        Args:
            db: Database instance
            chunk_size: Items per chunk (and per reader page)
            consolidator: Aggregate consolidator (built on db if None)
            runner: Job runner (built on db if None)
            clock: Source of the current time (UTC now if None)
        """
        self.db = db
        self.chunk_size = chunk_size
        self.consolidator = consolidator or AggregateConsolidator(db)
        self.clock = clock or (lambda: datetime.now(UTC))
        self.runner = runner or JobRunner(db, clock=self.clock)
        self.job: Job = consolidation_job(db, self.consolidator, JOB_NAME, chunk_size)
        self._token_guard = threading.Lock()
        self._last_token: Optional[str] = None
        self._token_sequence = 0

    def new_token(self) -> str:
        """Return a fresh run token: the ISO timestamp, suffixed if it repeats."""
        stamp = self.clock().isoformat()
        with self._token_guard:
            if stamp == self._last_token:
                self._token_sequence += 1
                return f"{stamp}#{self._token_sequence}"
            self._last_token = stamp
            self._token_sequence = 0
            return stamp

    def execute_batch(self, token: Optional[str] = None) -> BatchRunResult:
        """Run the consolidation job once.

        Args:
            token: Uniqueness token for this run (a new timestamp if None)

        Returns:
            BatchRunResult; run-level failures are reported in the status,
            never raised
        """
        token = token or self.new_token()
        start_time = self.clock()
        try:
            execution = self.runner.run(self.job, token)
        except JobAlreadyRunningError as e:
            logger.warning("Batch not started: %s", e)
            return self._result(BatchRunStatus.ALREADY_RUNNING, token, start_time, message=str(e))
        except JobInstanceAlreadyCompleteError as e:
            logger.warning("Batch not started: %s", e)
            return self._result(BatchRunStatus.ALREADY_COMPLETED, token, start_time, message=str(e))
        except JobRestartError as e:
            logger.error("Batch not restartable: %s", e)
            return self._result(BatchRunStatus.RESTART_ERROR, token, start_time, message=str(e))
        except Exception as e:
            logger.exception("Unexpected error running batch %s", token)
            return self._result(BatchRunStatus.UNEXPECTED_ERROR, token, start_time, message=str(e))

        status = (
            BatchRunStatus.COMPLETED
            if execution.status is JobStatus.COMPLETED
            else BatchRunStatus.FAILED
        )
        return self._result(
            status,
            token,
            execution.start_time,
            end_time=execution.end_time,
            execution=execution,
            message=execution.exit_message,
        )

    def _result(
        self,
        status: BatchRunStatus,
        token: str,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        execution: Optional[JobExecution] = None,
        message: Optional[str] = None,
    ) -> BatchRunResult:
        end_time = end_time or self.clock()
        logger.info(
            "Batch %s status=%s start=%s end=%s",
            token,
            status.value,
            start_time.isoformat(),
            end_time.isoformat(),
        )
        return BatchRunResult(
            status=status,
            token=token,
            start_time=start_time,
            end_time=end_time,
            execution=execution,
            message=message,
        )
