"""FastAPI application factory for the deployment worker."""

from typing import Any, Callable

from fastapi import FastAPI

from deploy_worker.config import AppSettings
from deploy_worker.db import DatabaseHealthPort, DeploymentRepositoryPort
from deploy_worker.jobs import JobRunner, JobTaskRegistry

from .routers import api_create_deployments_router, api_create_health_router


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    deployment_repository: DeploymentRepositoryPort,
    task_registry: JobTaskRegistry,
    job_runner: JobRunner,
    lifespan: Callable[[FastAPI], Any] | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        deployment_repository: Deployment repository for detail APIs.
        task_registry: Job dispatch table reported by the health endpoint.
        job_runner: Runner receiving submitted tasks.
        lifespan: Optional lifespan context factory owning shared clients.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        ValueError: Raised when router dependencies are invalid.
    """

    application = FastAPI(title="Deploy Worker", lifespan=lifespan)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identity for bootstrap verification."""

        return {
            "service": "deploy-worker",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(
        api_create_health_router(db_health_service=db_health_service, task_registry=task_registry)
    )
    application.include_router(
        api_create_deployments_router(deployment_repository=deployment_repository, job_runner=job_runner)
    )

    return application
