"""Job layer package for background task execution boundaries."""

from .interfaces import JobExecutionResult, JobOrchestratorPort, JobQueuePort, QueuedJobTask
from .runner import (
    InvalidJobTaskError,
    JobRunner,
    JobRunOutcome,
    JobTaskEnvelope,
    JobTaskRegistry,
    UnknownJobTaskError,
    job_task_deserialize,
    job_task_serialize,
)
from .stopping import (
    DEFAULT_WORKFLOW_CHECK_INTERVAL_SECONDS,
    DEFAULT_WORKFLOW_TIMEOUT_SECONDS,
    StoppingJob,
    StoppingJobConfig,
)
from .task_queue import InMemoryJobQueue
from .tasks import StoppingTaskPayload, job_build_stopping_task, job_register_stopping_task
from .workflow_wait import job_wait_for_workflow_success

__all__ = [
    "DEFAULT_WORKFLOW_CHECK_INTERVAL_SECONDS",
    "DEFAULT_WORKFLOW_TIMEOUT_SECONDS",
    "InMemoryJobQueue",
    "InvalidJobTaskError",
    "JobExecutionResult",
    "JobOrchestratorPort",
    "JobQueuePort",
    "JobRunOutcome",
    "JobRunner",
    "JobTaskEnvelope",
    "JobTaskRegistry",
    "QueuedJobTask",
    "StoppingJob",
    "StoppingJobConfig",
    "StoppingTaskPayload",
    "UnknownJobTaskError",
    "job_build_stopping_task",
    "job_register_stopping_task",
    "job_task_deserialize",
    "job_task_serialize",
    "job_wait_for_workflow_success",
]
