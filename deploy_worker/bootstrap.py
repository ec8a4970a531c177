"""Application bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import FastAPI

from deploy_worker.adapters import GithubActionsWorkflowAdapter
from deploy_worker.api import create_api_application
from deploy_worker.config import AppSettings, config_load_settings
from deploy_worker.db import SQLAlchemyDatabaseHealthService, SQLAlchemyDeploymentService, db_create_engine
from deploy_worker.jobs import InMemoryJobQueue, JobRunner, JobTaskRegistry, job_register_stopping_task


@dataclass(frozen=True)
class WorkerRuntime:
    """Wired runtime components sharing one engine and one workflow client.

    Attributes:
        settings: Validated settings.
        deployment_repository: Deployment persistence service.
        db_health_service: Database health service.
        workflow_client: GitHub Actions teardown client.
        task_registry: Job dispatch table.
        job_runner: Runner bound to an in-process queue.
    """

    settings: AppSettings
    deployment_repository: SQLAlchemyDeploymentService
    db_health_service: SQLAlchemyDatabaseHealthService
    workflow_client: GithubActionsWorkflowAdapter
    task_registry: JobTaskRegistry
    job_runner: JobRunner


def bootstrap_create_runtime(settings: AppSettings | None = None) -> WorkerRuntime:
    """Assemble persistence, workflow client, dispatch table and runner.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when None.

    Returns:
        WorkerRuntime: Fully wired runtime components.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    deployment_repository = SQLAlchemyDeploymentService(engine=engine)
    workflow_client = GithubActionsWorkflowAdapter(
        token=resolved_settings.github_token,
        repository_owner=resolved_settings.github_repository_owner,
        repository_name=resolved_settings.github_repository_name,
        workflow_file=resolved_settings.github_cleanup_workflow_file,
        workflow_ref=resolved_settings.github_workflow_ref,
        base_url=resolved_settings.github_api_base_url,
        request_timeout_seconds=resolved_settings.github_request_timeout_seconds,
        run_lookup_attempts=resolved_settings.github_run_lookup_attempts,
        run_lookup_interval_seconds=resolved_settings.github_run_lookup_interval_seconds,
    )
    task_registry = JobTaskRegistry()
    job_register_stopping_task(
        registry=task_registry,
        deployment_repository=deployment_repository,
        workflow_client=workflow_client,
    )
    return WorkerRuntime(
        settings=resolved_settings,
        deployment_repository=deployment_repository,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        workflow_client=workflow_client,
        task_registry=task_registry,
        job_runner=JobRunner(queue=InMemoryJobQueue(), registry=task_registry),
    )


def bootstrap_create_application(runtime: WorkerRuntime | None = None) -> FastAPI:
    """Assemble the HTTP application after validating startup configuration.

    Args:
        runtime: Optional pre-wired runtime; built from settings when None.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_runtime = runtime or bootstrap_create_runtime()

    @asynccontextmanager
    async def _bootstrap_lifespan(_application: FastAPI) -> AsyncIterator[None]:
        yield
        resolved_runtime.workflow_client.adapter_close()

    return create_api_application(
        settings=resolved_runtime.settings,
        db_health_service=resolved_runtime.db_health_service,
        deployment_repository=resolved_runtime.deployment_repository,
        task_registry=resolved_runtime.task_registry,
        job_runner=resolved_runtime.job_runner,
        lifespan=_bootstrap_lifespan,
    )
