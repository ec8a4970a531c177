"""Bounded polling that turns an asynchronous workflow run into a synchronous result."""

from __future__ import annotations

import logging
import time

from deploy_worker.adapters import (
    WorkflowClientPort,
    WorkflowRunFailedError,
    WorkflowRunHandle,
    WorkflowRunState,
    WorkflowWaitTimeoutError,
)
from deploy_worker.domain import domain_build_stage_event

logger = logging.getLogger(__name__)


def job_wait_for_workflow_success(
    workflow_client: WorkflowClientPort,
    run_handle: WorkflowRunHandle,
    timeout_seconds: float,
    check_interval_seconds: float,
    stage_timeline: list[dict[str, object]] | None = None,
) -> int:
    """Poll a workflow run until it succeeds, fails, or the wait times out.

    The first status query is issued immediately. After each non-terminal poll
    the monotonic deadline is checked and, if not yet reached, the loop sleeps
    for one check interval. The deadline is never checked mid-query, so the
    total wait may exceed `timeout_seconds` by at most one interval plus the
    duration of one status query. There is no external cancellation.

    Args:
        workflow_client: Client used to query run status.
        run_handle: Handle of the run to wait for.
        timeout_seconds: Maximum wait duration.
        check_interval_seconds: Delay between status queries.
        stage_timeline: Optional mutable timeline receiving poll events.

    Returns:
        int: Number of status queries performed.

    Raises:
        ValueError: Raised when timeout or interval is not positive.
        WorkflowRunFailedError: Raised when the run reports a terminal failure.
        WorkflowWaitTimeoutError: Raised when the deadline passes before a terminal state.
        WorkflowCallError: Raised when a status query fails.
    """

    if timeout_seconds <= 0:
        raise ValueError("timeout_seconds must be > 0")
    if check_interval_seconds <= 0:
        raise ValueError("check_interval_seconds must be > 0")

    started_at = time.monotonic()
    deadline = started_at + timeout_seconds
    poll_count = 0

    while True:
        run_status = workflow_client.adapter_poll_status(run_handle)
        poll_count += 1

        if run_status.state is WorkflowRunState.SUCCEEDED:
            _job_wait_record_event(
                stage_timeline,
                status="completed",
                details={"run_id": run_handle.run_id, "poll_count": poll_count},
            )
            return poll_count

        if run_status.state is WorkflowRunState.FAILED:
            cause = run_status.cause or f"workflow run {run_handle.run_id} failed"
            _job_wait_record_event(
                stage_timeline,
                status="failed",
                details={"run_id": run_handle.run_id, "poll_count": poll_count, "cause": cause},
            )
            raise WorkflowRunFailedError(cause, run_id=run_handle.run_id)

        now = time.monotonic()
        if now >= deadline:
            elapsed_seconds = round(now - started_at, 3)
            _job_wait_record_event(
                stage_timeline,
                status="timed_out",
                details={
                    "run_id": run_handle.run_id,
                    "poll_count": poll_count,
                    "elapsed_seconds": elapsed_seconds,
                },
            )
            raise WorkflowWaitTimeoutError(
                f"timed out after {elapsed_seconds} seconds waiting for workflow run "
                f"{run_handle.run_id} (timeout {timeout_seconds} seconds)",
                run_id=run_handle.run_id,
            )

        logger.debug(
            "workflow run %s still pending after poll %s; next check in %s seconds",
            run_handle.run_id,
            poll_count,
            check_interval_seconds,
        )
        time.sleep(check_interval_seconds)


def _job_wait_record_event(
    stage_timeline: list[dict[str, object]] | None,
    status: str,
    details: dict[str, object],
) -> None:
    if stage_timeline is not None:
        stage_timeline.append(domain_build_stage_event(stage="wait", status=status, details=details))
