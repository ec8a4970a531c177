"""Job that tears down a running deployment through the external cleanup workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from deploy_worker.adapters import WorkflowAdapterError, WorkflowClientPort
from deploy_worker.db import DeploymentRepositoryPort
from deploy_worker.domain import (
    DeploymentRecord,
    DeploymentStatus,
    InstanceRecord,
    domain_build_stage_event,
    domain_deployment_is_stoppable,
)

from .interfaces import JobExecutionResult, JobOrchestratorPort
from .workflow_wait import job_wait_for_workflow_success

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_TIMEOUT_SECONDS: Final[float] = 10 * 60.0
DEFAULT_WORKFLOW_CHECK_INTERVAL_SECONDS: Final[float] = 5.0


@dataclass(frozen=True)
class StoppingJobConfig:
    """Configuration values for one stopping job execution.

    Attributes:
        deployment_id: Deployment to stop.
        workflow_timeout_seconds: Maximum wait for the teardown run.
        workflow_check_interval_seconds: Delay between teardown run status polls.
    """

    deployment_id: int
    workflow_timeout_seconds: float = DEFAULT_WORKFLOW_TIMEOUT_SECONDS
    workflow_check_interval_seconds: float = DEFAULT_WORKFLOW_CHECK_INTERVAL_SECONDS


class StoppingJob(JobOrchestratorPort):
    """Drive one deployment from `running` to `stopped`, or to `failed` with a cause.

    Unknown deployments or instances and storage failures before the `stopping`
    write propagate to the runner with nothing mutated. Every failure after that
    write, including a failed `stopped` write, is reconciled into `failed` and
    the job still returns normally, so a row is never left in `stopping` by a
    job that ran to completion. Only a failure of the reconciliation write
    itself propagates.

    The run handle is not persisted: a crash during the wait leaves the row in
    `stopping`, where the precondition refuses any further stop. Recovering
    means resetting the row and dispatching a second teardown, and that
    workflow is not known to be idempotent. Two concurrent jobs for the same
    deployment are not guarded against either.
    """

    JOB_NAME: Final[str] = "stopping"

    def __init__(
        self,
        deployment_repository: DeploymentRepositoryPort,
        workflow_client: WorkflowClientPort,
        config: StoppingJobConfig,
    ):
        """Initialize stopping job dependencies.

        Args:
            deployment_repository: DB-layer deployment persistence service.
            workflow_client: Client for the external teardown workflow.
            config: Stopping execution configuration.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if deployment_repository is None:
            raise ValueError("deployment_repository must not be None")
        if workflow_client is None:
            raise ValueError("workflow_client must not be None")
        if config.workflow_timeout_seconds <= 0:
            raise ValueError("config.workflow_timeout_seconds must be > 0")
        if config.workflow_check_interval_seconds <= 0:
            raise ValueError("config.workflow_check_interval_seconds must be > 0")

        self._deployment_repository = deployment_repository
        self._workflow_client = workflow_client
        self._config = config

    def job_supported_names(self) -> tuple[str, ...]:
        """Return supported job names.

        Returns:
            tuple[str, ...]: Supported job names.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return (self.JOB_NAME,)

    def job_execute(self, job_name: str) -> JobExecutionResult:
        """Stop the configured deployment and reconcile the outcome into storage.

        Args:
            job_name: Name of job to execute.

        Returns:
            JobExecutionResult: `success` when stopped, `failed` when the failure was
                recorded on the deployment, `skipped` when the deployment was not running.

        Raises:
            ValueError: Raised when job name is unsupported.
            DeploymentNotFoundError: Raised when the deployment or its instance is unknown.
            DeploymentPersistenceError: Raised when a read, the `stopping` write or the
                `failed` reconciliation write fails.
        """

        normalized_job_name = job_name.strip()
        if normalized_job_name != self.JOB_NAME:
            raise ValueError(f"unsupported job_name={normalized_job_name}")

        deployment_id = self._config.deployment_id
        timeline: list[dict[str, object]] = []
        deployment = self._deployment_repository.db_deployment_get_by_id(deployment_id)

        if not domain_deployment_is_stoppable(deployment.status):
            logger.warning(
                "cannot stop deployment '%s': invalid state '%s'",
                deployment_id,
                deployment.status.value,
            )
            timeline.append(
                domain_build_stage_event(
                    stage="precondition",
                    status="skipped",
                    details={"deployment_status": deployment.status.value},
                )
            )
            return JobExecutionResult(job_name=normalized_job_name, status="skipped", stage_timeline=timeline)

        instance = self._deployment_repository.db_instance_get_by_id(deployment.instance_id)
        self._deployment_repository.db_deployment_set_status_and_error(deployment_id, DeploymentStatus.STOPPING, None)
        logger.info("deployment '%s' marked as stopping", deployment_id)

        # Once `stopping` is stored, every failure is reconciled into `failed`.
        try:
            self._job_teardown_and_wait(deployment=deployment, instance=instance, timeline=timeline)
        except Exception as error:
            if isinstance(error, WorkflowAdapterError):
                logger.error("failed to stop deployment '%s': %s", deployment_id, error)
            else:
                logger.exception("failed to stop deployment '%s': %s", deployment_id, error)
            timeline.append(
                domain_build_stage_event(
                    stage="run",
                    status="failed",
                    details={"error_type": type(error).__name__, "error_message": str(error)},
                )
            )
            self._job_mark_failed(deployment_id=deployment_id, error=error)
            return JobExecutionResult(job_name=normalized_job_name, status="failed", stage_timeline=timeline)

        timeline.append(domain_build_stage_event(stage="run", status="success"))
        return JobExecutionResult(job_name=normalized_job_name, status="success", stage_timeline=timeline)

    def _job_teardown_and_wait(
        self,
        deployment: DeploymentRecord,
        instance: InstanceRecord,
        timeline: list[dict[str, object]],
    ) -> None:
        """Run the teardown workflow, wait for it, then mark the deployment stopped.

        Args:
            deployment: Deployment already marked `stopping`.
            instance: Instance whose infrastructure is released.
            timeline: Mutable stage timeline events.

        Returns:
            None: Deployment state is updated as side effect.

        Raises:
            WorkflowAdapterError: Raised when teardown could not start, failed, or timed out.
            DeploymentPersistenceError: Raised when the `stopped` write fails.
        """

        timeline.append(domain_build_stage_event(stage="teardown", status="started"))

        run_handle = self._workflow_client.adapter_start_teardown(instance)
        timeline.append(
            domain_build_stage_event(
                stage="teardown",
                status="dispatched",
                details={
                    "source": self._workflow_client.adapter_source_name(),
                    "run_id": run_handle.run_id,
                    "run_url": run_handle.html_url,
                },
            )
        )

        job_wait_for_workflow_success(
            workflow_client=self._workflow_client,
            run_handle=run_handle,
            timeout_seconds=self._config.workflow_timeout_seconds,
            check_interval_seconds=self._config.workflow_check_interval_seconds,
            stage_timeline=timeline,
        )

        self._deployment_repository.db_deployment_set_status_and_error(
            deployment.deployment_id,
            DeploymentStatus.STOPPED,
            None,
        )
        logger.info("deployment '%s' stopped by workflow run %s", deployment.deployment_id, run_handle.run_id)

    def _job_mark_failed(self, deployment_id: int, error: Exception) -> None:
        """Persist the failed status with a human-readable cause.

        Args:
            deployment_id: Deployment identifier.
            error: Failure caught after the `stopping` write.

        Returns:
            None: Deployment state is updated as side effect.

        Raises:
            DeploymentPersistenceError: Raised when the reconciliation write fails.
        """

        self._deployment_repository.db_deployment_set_status_and_error(
            deployment_id,
            DeploymentStatus.FAILED,
            f"failed to stop deployment: {error}",
        )
