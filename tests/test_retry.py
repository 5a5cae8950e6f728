"""Tests for batch retries and alerting."""

import logging
from datetime import timedelta

import pytest

from b3ledger.batch.retry import RetryingTrigger, RetryPolicy
from b3ledger.batch.service import BatchRunResult, BatchRunStatus


def _result(status: BatchRunStatus, token: str = "tok") -> BatchRunResult:
    return BatchRunResult(status=status, token=token, message=status.value.lower())


class ScriptedTrigger:
    """Trigger returning queued statuses, one per call."""

    def __init__(self, *statuses: BatchRunStatus):
        self.statuses = list(statuses)
        self.calls = 0

    def __call__(self) -> BatchRunResult:
        self.calls += 1
        return _result(self.statuses.pop(0), token=f"tok-{self.calls}")


def test_policy_validation():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(wait=timedelta(seconds=-1))
    assert RetryPolicy.default() == RetryPolicy(max_attempts=3, wait=timedelta(seconds=5))


def test_success_is_not_retried():
    trigger = ScriptedTrigger(BatchRunStatus.COMPLETED)
    sleeps = []

    result = RetryingTrigger(trigger, sleep=sleeps.append)()

    assert result.succeeded
    assert trigger.calls == 1
    assert sleeps == []


def test_failure_retried_until_success():
    trigger = ScriptedTrigger(BatchRunStatus.FAILED, BatchRunStatus.UNEXPECTED_ERROR, BatchRunStatus.COMPLETED)
    sleeps = []
    policy = RetryPolicy(max_attempts=3, wait=timedelta(seconds=2))

    result = RetryingTrigger(trigger, policy=policy, sleep=sleeps.append)()

    assert result.succeeded
    assert result.token == "tok-3"
    assert sleeps == [2.0, 2.0]


@pytest.mark.parametrize(
    "status",
    [BatchRunStatus.ALREADY_RUNNING, BatchRunStatus.ALREADY_COMPLETED, BatchRunStatus.RESTART_ERROR],
)
def test_rejections_are_not_retried(status):
    trigger = ScriptedTrigger(status)
    notified = []

    result = RetryingTrigger(trigger, sleep=lambda s: None, notifier=lambda r, n: notified.append(r))()

    assert result.status is status
    assert trigger.calls == 1
    assert notified == []


def test_exhausted_retries_alert_operator(caplog):
    trigger = ScriptedTrigger(*[BatchRunStatus.FAILED] * 3)
    notified = []
    policy = RetryPolicy(max_attempts=3, wait=timedelta(0))

    with caplog.at_level(logging.ERROR, logger="b3ledger.alerts"):
        result = RetryingTrigger(
            trigger, policy=policy, sleep=lambda s: None, notifier=lambda r, n: notified.append((r.token, n))
        )()

    assert result.status is BatchRunStatus.FAILED
    assert trigger.calls == 3
    assert notified == [("tok-3", 3)]
    assert any("after 3 attempts" in record.getMessage() for record in caplog.records)
