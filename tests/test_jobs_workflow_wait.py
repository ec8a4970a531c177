"""Tests for bounded workflow run polling.

The wait loop's clock is replaced by a fake so poll spacing and timeout bounds
are asserted exactly without sleeping.
"""

from __future__ import annotations

import pytest

from deploy_worker.adapters import (
    WorkflowCallError,
    WorkflowRunFailedError,
    WorkflowRunHandle,
    WorkflowRunState,
    WorkflowRunStatus,
    WorkflowWaitTimeoutError,
)
from deploy_worker.jobs import job_wait_for_workflow_success
from workflow_doubles import FakeClock, ScriptedWorkflowClient

_PENDING = WorkflowRunStatus(state=WorkflowRunState.PENDING)
_SUCCEEDED = WorkflowRunStatus(state=WorkflowRunState.SUCCEEDED)
_RUN_HANDLE = WorkflowRunHandle(run_id=42)


def test_jobs_workflow_wait_returns_after_nth_poll_with_interval_spacing(fake_clock: FakeClock) -> None:
    """Poll N times with N-1 interval sleeps when the run succeeds on poll N.

    Args:
        fake_clock: Deterministic wait clock fixture.

    Returns:
        None: Assertions validate poll count and spacing.

    Raises:
        AssertionError: Raised when polling cadence differs.
    """

    client = ScriptedWorkflowClient(statuses=[_PENDING, _PENDING, _SUCCEEDED], clock=fake_clock)

    poll_count = job_wait_for_workflow_success(
        workflow_client=client,
        run_handle=_RUN_HANDLE,
        timeout_seconds=60,
        check_interval_seconds=5,
    )

    assert poll_count == 3
    assert fake_clock.sleep_calls == [5, 5]
    assert client.poll_times == [0.0, 5.0, 10.0]
    assert all(later - earlier >= 5 for earlier, later in zip(client.poll_times, client.poll_times[1:]))


def test_jobs_workflow_wait_first_poll_is_immediate(fake_clock: FakeClock) -> None:
    """Return without sleeping when the first poll already reports success."""

    client = ScriptedWorkflowClient(statuses=[_SUCCEEDED], clock=fake_clock)

    poll_count = job_wait_for_workflow_success(client, _RUN_HANDLE, timeout_seconds=10, check_interval_seconds=5)

    assert poll_count == 1
    assert fake_clock.sleep_calls == []


def test_jobs_workflow_wait_raises_failure_with_upstream_cause(fake_clock: FakeClock) -> None:
    """Raise a run-failed error carrying the cause reported by the client.

    Args:
        fake_clock: Deterministic wait clock fixture.

    Returns:
        None: Assertions validate failure propagation.

    Raises:
        AssertionError: Raised when the cause is lost.
    """

    failed_status = WorkflowRunStatus(
        state=WorkflowRunState.FAILED,
        cause="workflow run 42 completed with conclusion 'failure'",
    )
    client = ScriptedWorkflowClient(statuses=[_PENDING, failed_status], clock=fake_clock)
    timeline: list[dict[str, object]] = []

    with pytest.raises(WorkflowRunFailedError, match="conclusion 'failure'") as error_info:
        job_wait_for_workflow_success(client, _RUN_HANDLE, 60, 5, stage_timeline=timeline)

    assert error_info.value.run_id == 42
    assert timeline[-1]["stage"] == "wait"
    assert timeline[-1]["status"] == "failed"


@pytest.mark.parametrize(
    ("timeout_seconds", "check_interval_seconds", "expected_poll_count"),
    [
        (10, 5, 3),
        (12, 5, 4),
        (5, 5, 2),
    ],
)
def test_jobs_workflow_wait_times_out_within_one_interval_of_timeout(
    fake_clock: FakeClock,
    timeout_seconds: float,
    check_interval_seconds: float,
    expected_poll_count: int,
) -> None:
    """Give up no earlier than the timeout and no later than timeout plus one interval.

    Args:
        fake_clock: Deterministic wait clock fixture.
        timeout_seconds: Wait bound under test.
        check_interval_seconds: Poll interval under test.
        expected_poll_count: Polls issued before the deadline check fails.

    Returns:
        None: Assertions validate the timeout bounds.

    Raises:
        AssertionError: Raised when the wait ends outside its bounds.
    """

    client = ScriptedWorkflowClient(statuses=[_PENDING], clock=fake_clock)
    timeline: list[dict[str, object]] = []

    with pytest.raises(WorkflowWaitTimeoutError, match="timed out") as error_info:
        job_wait_for_workflow_success(
            client,
            _RUN_HANDLE,
            timeout_seconds=timeout_seconds,
            check_interval_seconds=check_interval_seconds,
            stage_timeline=timeline,
        )

    assert isinstance(error_info.value, TimeoutError)
    assert len(client.poll_times) == expected_poll_count
    assert timeout_seconds <= fake_clock.now <= timeout_seconds + check_interval_seconds
    assert timeline[-1]["status"] == "timed_out"


def test_jobs_workflow_wait_propagates_status_query_errors(fake_clock: FakeClock) -> None:
    """Surface a failed status query without further polling."""

    client = ScriptedWorkflowClient(clock=fake_clock, poll_error=WorkflowCallError("GitHub API GET timed out"))

    with pytest.raises(WorkflowCallError, match="timed out"):
        job_wait_for_workflow_success(client, _RUN_HANDLE, timeout_seconds=10, check_interval_seconds=5)

    assert len(client.poll_times) == 1
    assert fake_clock.sleep_calls == []


@pytest.mark.parametrize(("timeout_seconds", "check_interval_seconds"), [(0, 5), (10, 0), (-1, 5)])
def test_jobs_workflow_wait_rejects_non_positive_durations(
    fake_clock: FakeClock,
    timeout_seconds: float,
    check_interval_seconds: float,
) -> None:
    """Reject zero or negative wait bounds before polling.

    Args:
        fake_clock: Deterministic wait clock fixture.
        timeout_seconds: Wait bound under test.
        check_interval_seconds: Poll interval under test.

    Returns:
        None: Assertions validate argument validation.

    Raises:
        AssertionError: Raised when invalid durations are accepted.
    """

    client = ScriptedWorkflowClient(clock=fake_clock)

    with pytest.raises(ValueError, match="must be > 0"):
        job_wait_for_workflow_success(client, _RUN_HANDLE, timeout_seconds, check_interval_seconds)

    assert client.poll_times == []
