"""Task payload models and registration for the job types this worker runs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from deploy_worker.adapters import WorkflowClientPort
from deploy_worker.db import DeploymentRepositoryPort

from .runner import JobTaskEnvelope, JobTaskRegistry
from .stopping import (
    DEFAULT_WORKFLOW_CHECK_INTERVAL_SECONDS,
    DEFAULT_WORKFLOW_TIMEOUT_SECONDS,
    StoppingJob,
    StoppingJobConfig,
)


class StoppingTaskPayload(BaseModel):
    """Serialized parameters of one stopping task.

    Stopping is a one-shot task; it carries no recurring schedule.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    deployment_id: int
    workflow_timeout_seconds: float = Field(default=DEFAULT_WORKFLOW_TIMEOUT_SECONDS, gt=0)
    workflow_check_interval_seconds: float = Field(default=DEFAULT_WORKFLOW_CHECK_INTERVAL_SECONDS, gt=0)


def job_build_stopping_task(
    deployment_id: int,
    workflow_timeout_seconds: float | None = None,
    workflow_check_interval_seconds: float | None = None,
) -> JobTaskEnvelope:
    """Build the task descriptor that stops one deployment.

    Args:
        deployment_id: Deployment to stop.
        workflow_timeout_seconds: Optional wait override; defaults to 10 minutes.
        workflow_check_interval_seconds: Optional poll interval override; defaults to 5 seconds.

    Returns:
        JobTaskEnvelope: Descriptor ready for `JobRunner.runner_submit`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    payload: dict[str, object] = {"deployment_id": deployment_id}
    if workflow_timeout_seconds is not None:
        payload["workflow_timeout_seconds"] = workflow_timeout_seconds
    if workflow_check_interval_seconds is not None:
        payload["workflow_check_interval_seconds"] = workflow_check_interval_seconds
    return JobTaskEnvelope(task_type=StoppingJob.JOB_NAME, payload=payload)


def job_register_stopping_task(
    registry: JobTaskRegistry,
    deployment_repository: DeploymentRepositoryPort,
    workflow_client: WorkflowClientPort,
) -> None:
    """Register the stopping job handler with its injected dependencies.

    Args:
        registry: Dispatch table to update.
        deployment_repository: Deployment persistence service handed to each job.
        workflow_client: Workflow client handed to each job.

    Returns:
        None: Registry is updated as side effect.

    Raises:
        ValueError: Raised when the stopping handler is already registered.
    """

    def _build_stopping_job(payload: StoppingTaskPayload) -> StoppingJob:
        return StoppingJob(
            deployment_repository=deployment_repository,
            workflow_client=workflow_client,
            config=StoppingJobConfig(
                deployment_id=payload.deployment_id,
                workflow_timeout_seconds=payload.workflow_timeout_seconds,
                workflow_check_interval_seconds=payload.workflow_check_interval_seconds,
            ),
        )

    registry.job_registry_register(
        task_type=StoppingJob.JOB_NAME,
        payload_model=StoppingTaskPayload,
        factory=_build_stopping_job,
    )
