"""Cron scheduling of the consolidation batch (APScheduler)."""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from b3ledger.batch.retry import Notifier, RetryingTrigger, RetryPolicy
from b3ledger.batch.service import JOB_NAME, BatchRunResult, BatchService

logger = logging.getLogger(__name__)

DEFAULT_CRON = "0 1 * * *"

JOB_DEFAULTS = {
    "coalesce": True,  # If multiple runs are missed, only run once
    "max_instances": 1,  # Prevent concurrent runs of the same job
    "misfire_grace_time": 60,
}


def parse_cron(expression: str, timezone=None) -> CronTrigger:
    """Build a CronTrigger from a five-field crontab expression.

    Raises:
        ValueError: If the expression is invalid
    """
    return CronTrigger.from_crontab(expression, timezone=timezone)


class BatchScheduler:
    """Run the consolidation batch on a cron schedule and on demand.

    Both paths go through the same retrying trigger, and the job runner
    behind it rejects overlapping runs.
    """

    def __init__(
        self,
        batch_service: BatchService,
        cron: str = DEFAULT_CRON,
        retry_policy: Optional[RetryPolicy] = None,
        notifier: Optional[Notifier] = None,
        sleep: Callable[[float], None] = time.sleep,
        blocking: bool = False,
        scheduler: Optional[BaseScheduler] = None,
        timezone=None,
    ):
        """Initialize batch scheduler.

        Args:
            batch_service: Service that runs the job
            cron: Five-field crontab expression
            retry_policy: Retry configuration (default policy if None)
            notifier: Called with the last result when retries are exhausted
            sleep: Sleep function used between attempts
            blocking: Use a BlockingScheduler (for a foreground process)
            scheduler: Pre-built APScheduler scheduler
            timezone: Timezone of the cron expression (scheduler default if None)
        """
        self.batch_service = batch_service
        self.cron = cron
        self.trigger = parse_cron(cron, timezone=timezone)
        self.invoke = RetryingTrigger(
            batch_service.execute_batch,
            policy=retry_policy,
            sleep=sleep,
            notifier=notifier,
        )
        if scheduler is None:
            scheduler_class = BlockingScheduler if blocking else BackgroundScheduler
            scheduler = scheduler_class(job_defaults=JOB_DEFAULTS)
        self.scheduler = scheduler

    def start(self) -> None:
        """Register the cron job and start the scheduler."""
        self.scheduler.add_job(
            self.run_scheduled,
            trigger=self.trigger,
            id=JOB_NAME,
            name=JOB_NAME,
            replace_existing=True,
        )
        logger.info("Scheduling %s with cron '%s'", JOB_NAME, self.cron)
        self.scheduler.start()

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Batch scheduler stopped")

    def run_scheduled(self) -> BatchRunResult:
        """Entry point of the cron job."""
        result = self.invoke()
        logger.info("Scheduled batch finished with status %s", result.status.value)
        return result

    def trigger_now(self) -> BatchRunResult:
        """Run the batch immediately, with the same retry policy and guard."""
        logger.info("On-demand batch triggered")
        return self.invoke()

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_NAME)
        # Pending jobs (scheduler not started) have no next_run_time yet
        return getattr(job, "next_run_time", None) if job is not None else None
