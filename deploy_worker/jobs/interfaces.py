"""Typed interfaces for job-layer execution responsibilities."""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class JobExecutionResult:
    """Result contract for one job execution.

    Attributes:
        job_name: Job identifier.
        status: Final execution state (`success`, `failed`, `skipped`).
        stage_timeline: Structured stage events captured during execution.
    """

    job_name: str
    status: str
    stage_timeline: list[dict[str, object]] = field(default_factory=list)


class JobOrchestratorPort(Protocol):
    """Port definition for one runnable background job."""

    def job_supported_names(self) -> tuple[str, ...]:
        """Return the set of job names this orchestrator can execute.

        Returns:
            tuple[str, ...]: Deterministic list of supported job names.

        Raises:
            RuntimeError: Raised when supported job metadata is unavailable.
        """

    def job_execute(self, job_name: str) -> JobExecutionResult:
        """Execute one named job.

        Args:
            job_name: Job name.

        Returns:
            JobExecutionResult: Final execution status payload.

        Raises:
            RuntimeError: Raised when job execution fails in a way the runner must retry.
        """


@dataclass(frozen=True)
class QueuedJobTask:
    """One serialized task handed out by a job queue.

    Attributes:
        task_id: Queue-assigned task identifier.
        serialized_task: JSON task descriptor.
    """

    task_id: str
    serialized_task: str


class JobQueuePort(Protocol):
    """Port definition for the queue that stores and hands out serialized tasks.

    Storage, retry and backoff policies belong to the queue implementation.
    """

    def queue_submit_task(self, serialized_task: str) -> str:
        """Store one serialized task.

        Args:
            serialized_task: JSON task descriptor.

        Returns:
            str: Queue-assigned task identifier.

        Raises:
            RuntimeError: Raised when the task cannot be stored.
        """

    def queue_fetch_next(self) -> QueuedJobTask | None:
        """Hand out the next pending task.

        Returns:
            QueuedJobTask | None: Next task, or None when the queue is empty.

        Raises:
            RuntimeError: Raised when the queue cannot be read.
        """

    def queue_mark_complete(self, task_id: str) -> None:
        """Acknowledge successful execution and remove the task.

        Args:
            task_id: Task identifier.

        Returns:
            None: Queue state is updated as side effect.

        Raises:
            LookupError: Raised when the task is unknown.
        """

    def queue_mark_failed(self, task_id: str, error_message: str) -> None:
        """Report a failed execution so the queue can apply its retry policy.

        Args:
            task_id: Task identifier.
            error_message: Failure description.

        Returns:
            None: Queue state is updated as side effect.

        Raises:
            LookupError: Raised when the task is unknown.
        """
