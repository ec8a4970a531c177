"""Deployment API router for status inspection and stop triggers."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Query, status
from fastapi.responses import JSONResponse

from deploy_worker.db import DeploymentNotFoundError, DeploymentRepositoryPort
from deploy_worker.domain import DeploymentRecord
from deploy_worker.jobs import InvalidJobTaskError, JobRunner, job_build_stopping_task


def api_create_deployments_router(
    deployment_repository: DeploymentRepositoryPort,
    job_runner: JobRunner,
) -> APIRouter:
    """Create deployment router with detail and stop endpoints.

    Args:
        deployment_repository: DB-layer deployment repository.
        job_runner: Runner receiving submitted stop tasks.

    Returns:
        APIRouter: Router exposing deployment APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if deployment_repository is None:
        raise ValueError("deployment_repository must not be None")
    if job_runner is None:
        raise ValueError("job_runner must not be None")

    router = APIRouter(prefix="/deployments", tags=["deployments"])

    @router.get("/{deployment_id}")
    def api_deployment_detail(deployment_id: int) -> JSONResponse:
        """Return one deployment's status and error text.

        Args:
            deployment_id: Deployment identifier.

        Returns:
            JSONResponse: Deployment payload or 404 error payload.
        """

        try:
            deployment = deployment_repository.db_deployment_get_by_id(deployment_id)
        except DeploymentNotFoundError:
            payload = {"status": "error", "message": "deployment not found"}
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)
        return JSONResponse(content=_api_serialize_deployment(deployment), status_code=status.HTTP_200_OK)

    @router.post("/{deployment_id}/stop")
    def api_deployment_stop_trigger(
        deployment_id: int,
        background_tasks: BackgroundTasks,
        workflow_timeout_seconds: float | None = Query(default=None),
        workflow_check_interval_seconds: float | None = Query(default=None),
    ) -> JSONResponse:
        """Submit one stopping task and execute it after the response is sent.

        Args:
            deployment_id: Deployment identifier.
            background_tasks: FastAPI background task scheduler.
            workflow_timeout_seconds: Optional teardown wait override.
            workflow_check_interval_seconds: Optional poll interval override.

        Returns:
            JSONResponse: 202 with task id, or 400 when overrides are invalid.
        """

        envelope = job_build_stopping_task(
            deployment_id=deployment_id,
            workflow_timeout_seconds=workflow_timeout_seconds,
            workflow_check_interval_seconds=workflow_check_interval_seconds,
        )
        try:
            task_id = job_runner.runner_submit(envelope)
        except InvalidJobTaskError as error:
            payload = {"status": "error", "message": str(error)}
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        background_tasks.add_task(job_runner.runner_run_next)
        payload = {"status": "submitted", "task_id": task_id, "task_type": envelope.task_type}
        return JSONResponse(content=payload, status_code=status.HTTP_202_ACCEPTED)

    return router


def _api_serialize_deployment(deployment: DeploymentRecord) -> dict[str, object]:
    return {
        "deployment_id": deployment.deployment_id,
        "instance_id": deployment.instance_id,
        "status": deployment.status.value,
        "error": deployment.error,
        "created_at_utc": deployment.created_at_utc.isoformat(),
        "updated_at_utc": deployment.updated_at_utc.isoformat(),
    }
