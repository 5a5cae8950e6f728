"""Fixed-backoff retry around batch triggers, with operator alerting."""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from b3ledger.batch.service import BatchRunResult, BatchRunStatus

logger = logging.getLogger(__name__)
alerts = logging.getLogger("b3ledger.alerts")

RETRYABLE_STATUSES = frozenset({BatchRunStatus.FAILED, BatchRunStatus.UNEXPECTED_ERROR})

Notifier = Callable[[BatchRunResult, int], None]


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for batch retry behavior."""

    max_attempts: int = 3
    wait: timedelta = timedelta(seconds=5)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.wait < timedelta(0):
            raise ValueError(f"wait cannot be negative, got {self.wait}")

    @staticmethod
    def default() -> "RetryPolicy":
        """Default retry configuration."""
        return RetryPolicy()

    def should_retry(self, result: BatchRunResult, attempt: int) -> bool:
        return result.status in RETRYABLE_STATUSES and attempt < self.max_attempts


class RetryingTrigger:
    """Invoke a batch trigger until it stops failing or attempts run out.

    Rejections (already running, already completed, restart errors) are
    reported as they are and never retried. Every attempt calls the trigger
    anew, so each retry runs under a fresh token.
    """

    def __init__(
        self,
        trigger: Callable[[], BatchRunResult],
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        notifier: Optional[Notifier] = None,
    ):
        self.trigger = trigger
        self.policy = policy or RetryPolicy.default()
        self.sleep = sleep
        self.notifier = notifier

    def __call__(self) -> BatchRunResult:
        attempt = 1
        result = self.trigger()
        while self.policy.should_retry(result, attempt):
            logger.warning(
                "Batch attempt %d/%d ended %s: %s; retrying in %ss",
                attempt,
                self.policy.max_attempts,
                result.status.value,
                result.message,
                self.policy.wait.total_seconds(),
            )
            self.sleep(self.policy.wait.total_seconds())
            attempt += 1
            result = self.trigger()

        if result.status in RETRYABLE_STATUSES:
            alerts.error(
                "Batch failed after %d attempts (last token %s, status %s): %s",
                attempt,
                result.token,
                result.status.value,
                result.message,
            )
            if self.notifier is not None:
                self.notifier(result, attempt)
        return result
