"""Chunk-oriented step and the job runner that guards its executions."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Callable, Optional

from b3ledger.batch.errors import (
    JobAlreadyRunningError,
    JobInstanceAlreadyCompleteError,
    JobRestartError,
)
from b3ledger.batch.processor import OperationItemProcessor
from b3ledger.batch.reader import DEFAULT_PAGE_SIZE, OperationItemReader
from b3ledger.batch.writer import FinancialAssetItemWriter
from b3ledger.database.base import Database
from b3ledger.domain.entities import JobExecution, JobStatus

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = DEFAULT_PAGE_SIZE

# A STARTED execution of another run older than this is treated as abandoned
DEFAULT_STALE_AFTER = timedelta(hours=2)


@dataclass
class StepContribution:
    """Counters of one step execution."""

    read_count: int = 0
    write_count: int = 0
    skip_count: int = 0
    chunk_count: int = 0


class ChunkStep:
    """Read, process and write items one chunk at a time.

    Chunks run sequentially; each is committed before the next is read, so
    stopping is only observed between chunks.
    """

    def __init__(
        self,
        reader: OperationItemReader,
        processor: OperationItemProcessor,
        writer: FinancialAssetItemWriter,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self.reader = reader
        self.processor = processor
        self.writer = writer
        self.chunk_size = chunk_size
        self.should_stop = should_stop or (lambda: False)
        self.contribution = StepContribution()

    def execute(self) -> StepContribution:
        """Run chunks until the reader is exhausted.

        Raises:
            ChunkWriteError: If a chunk could not be written. Earlier chunks
                stay committed; ``contribution`` holds their counts.
        """
        self.contribution = StepContribution()
        while not self.should_stop():
            items = self.reader.read_chunk(self.chunk_size)
            if not items:
                break
            self.contribution.read_count += len(items)

            plans = []
            for item in items:
                plan = self.processor.process(item)
                if plan is None:
                    self.contribution.skip_count += 1
                else:
                    plans.append(plan)

            written = self.writer.write(plans)
            self.contribution.write_count += len(written)
            self.contribution.skip_count += len(plans) - len(written)
            self.contribution.chunk_count += 1
            logger.info(
                "Chunk %d: read %d, wrote %d, skipped %d",
                self.contribution.chunk_count,
                len(items),
                len(written),
                len(items) - len(written),
            )
        return self.contribution


@dataclass(frozen=True)
class Job:
    """A named job; ``step_factory`` builds a fresh step for every run."""

    name: str
    step_factory: Callable[[], ChunkStep]


def consolidation_job(db: Database, consolidator, name: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Job:
    """Build the job that consolidates pending operations into portfolios."""

    def build_step() -> ChunkStep:
        return ChunkStep(
            reader=OperationItemReader(db, page_size=chunk_size),
            processor=OperationItemProcessor(consolidator),
            writer=FinancialAssetItemWriter(db, consolidator),
            chunk_size=chunk_size,
        )

    return Job(name=name, step_factory=build_step)


def _naive_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class JobRunner:
    """Run jobs with at most one active execution per job name.

    A second trigger for a running job is rejected, not queued. Executions
    are recorded in the database so a token that already completed, or that
    was left STARTED by a dead process, is refused.
    """

    _locks: dict[str, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(
        self,
        db: Database,
        clock: Optional[Callable[[], datetime]] = None,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
    ):
        """Initialize job runner.

        Args:
            db: Database instance holding the execution registry
            clock: Source of the current time (UTC now if None)
            stale_after: Age after which another run's STARTED record no
                longer blocks new executions
        """
        self.db = db
        self.clock = clock or (lambda: datetime.now(UTC))
        self.stale_after = stale_after

    @classmethod
    def _lock_for(cls, job_name: str) -> threading.Lock:
        with cls._locks_guard:
            return cls._locks.setdefault(job_name, threading.Lock())

    def run(self, job: Job, token: str) -> JobExecution:
        """Run one execution of a job.

        Args:
            job: Job to run
            token: Uniqueness token of this run (a timestamp)

        Returns:
            The finished JobExecution, COMPLETED or FAILED

        Raises:
            JobAlreadyRunningError: If the job is already running
            JobInstanceAlreadyCompleteError: If the token already completed
            JobRestartError: If the token was left unfinished by an earlier run
        """
        lock = self._lock_for(job.name)
        if not lock.acquire(blocking=False):
            raise JobAlreadyRunningError(f"Job '{job.name}' is already running")
        try:
            self._check_registry(job.name, token)
            execution = self.db.create_job_execution(job.name, token, self.clock())
            logger.info("Started job '%s' (token %s, execution %s)", job.name, token, execution.id)
            return self._execute(job, execution)
        finally:
            lock.release()

    def _check_registry(self, job_name: str, token: str) -> None:
        for previous in self.db.find_job_executions(job_name, token):
            if previous.status is JobStatus.COMPLETED:
                raise JobInstanceAlreadyCompleteError(
                    f"Job '{job_name}' already completed for token {token}"
                )
            if previous.status is JobStatus.STARTED:
                raise JobRestartError(
                    f"Job '{job_name}' execution {previous.id} for token {token} never finished"
                )

        threshold = _naive_utc(self.clock()) - self.stale_after
        for other in self.db.find_job_executions(job_name):
            if other.status is JobStatus.STARTED and _naive_utc(other.start_time) > threshold:
                raise JobAlreadyRunningError(
                    f"Job '{job_name}' is already running (execution {other.id})"
                )

    def _execute(self, job: Job, execution: JobExecution) -> JobExecution:
        step = job.step_factory()
        status = JobStatus.COMPLETED
        message = None
        try:
            step.execute()
        except Exception as e:
            logger.exception("Job '%s' execution %s failed", job.name, execution.id)
            status = JobStatus.FAILED
            message = str(e)

        counts = step.contribution
        finished = self.db.update_job_execution(
            execution.id,
            status,
            end_time=self.clock(),
            read_count=counts.read_count,
            write_count=counts.write_count,
            skip_count=counts.skip_count,
            chunk_count=counts.chunk_count,
            exit_message=message,
        )
        logger.info(
            "Job '%s' execution %s %s: read %d, wrote %d, skipped %d in %d chunks",
            job.name,
            execution.id,
            status.value,
            counts.read_count,
            counts.write_count,
            counts.skip_count,
            counts.chunk_count,
        )
        return finished
