"""Tests for runtime wiring and the `stop-deployment` command exit codes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from deploy_worker import main as main_module
from deploy_worker.adapters import WorkflowRunState, WorkflowRunStatus
from deploy_worker.bootstrap import WorkerRuntime, bootstrap_create_application, bootstrap_create_runtime
from deploy_worker.config import AppSettings
from deploy_worker.db import SQLAlchemyDatabaseHealthService, SQLAlchemyDeploymentService, db_create_engine
from deploy_worker.jobs import InMemoryJobQueue, JobRunner, JobTaskRegistry, job_register_stopping_task
from workflow_doubles import FakeClock, ScriptedWorkflowClient


class _ClosableScriptedWorkflowClient(ScriptedWorkflowClient):
    """Scripted client that records whether it was closed."""

    closed = False

    def adapter_close(self) -> None:
        """Record the close call."""

        self.closed = True


def _build_settings(database_url: str) -> AppSettings:
    return AppSettings(
        environment_name="test",
        database_url=database_url,
        github_token="token",
        github_repository_owner="acme",
        github_repository_name="infra",
    )


def _build_runtime(settings: AppSettings, workflow_client: ScriptedWorkflowClient) -> WorkerRuntime:
    """Wire a runtime around a scripted workflow client.

    Args:
        settings: Settings pointing at the migrated SQLite database.
        workflow_client: Scripted workflow client.

    Returns:
        WorkerRuntime: Runtime mirroring the production wiring.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    engine = db_create_engine(settings.database_url)
    repository = SQLAlchemyDeploymentService(engine=engine)
    registry = JobTaskRegistry()
    job_register_stopping_task(registry=registry, deployment_repository=repository, workflow_client=workflow_client)
    return WorkerRuntime(
        settings=settings,
        deployment_repository=repository,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        workflow_client=workflow_client,
        task_registry=registry,
        job_runner=JobRunner(queue=InMemoryJobQueue(), registry=registry),
    )


@pytest.mark.parametrize(
    ("initial_status", "poll_status", "expected_exit_code", "expected_status"),
    [
        ("running", WorkflowRunStatus(state=WorkflowRunState.SUCCEEDED), 0, "stopped"),
        ("running", WorkflowRunStatus(state=WorkflowRunState.FAILED, cause="run failed"), 1, "failed"),
        ("stopped", WorkflowRunStatus(state=WorkflowRunState.SUCCEEDED), 0, "stopped"),
    ],
)
def test_main_stop_deployment_maps_job_outcome_to_exit_code(
    monkeypatch: pytest.MonkeyPatch,
    migrated_database_url: str,
    seed_deployment,
    fake_clock: FakeClock,
    initial_status: str,
    poll_status: WorkflowRunStatus,
    expected_exit_code: int,
    expected_status: str,
) -> None:
    """Return 0 for stopped or skipped deployments and 1 for recorded failures.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        migrated_database_url: URL of the migrated SQLite database.
        seed_deployment: Row seeding helper fixture.
        fake_clock: Deterministic wait clock fixture.
        initial_status: Seeded deployment status.
        poll_status: Status reported by the scripted workflow.
        expected_exit_code: Exit code expected from the command.
        expected_status: Deployment status expected afterwards.

    Returns:
        None: Assertions validate exit code and persisted status.

    Raises:
        AssertionError: Raised when the exit code or state differs.
    """

    seed_deployment(deployment_id=1, status=initial_status)
    settings = _build_settings(migrated_database_url)
    workflow_client = _ClosableScriptedWorkflowClient(statuses=[poll_status], clock=fake_clock)
    runtime = _build_runtime(settings, workflow_client)
    monkeypatch.setattr(main_module, "bootstrap_create_runtime", lambda _settings: runtime)

    exit_code = main_module.main_stop_deployment(
        settings=settings,
        deployment_id=1,
        timeout_seconds=10,
        check_interval_seconds=5,
    )

    assert exit_code == expected_exit_code
    assert workflow_client.closed is True
    assert runtime.deployment_repository.db_deployment_get_by_id(1).status.value == expected_status


def test_main_stop_deployment_returns_failure_for_unknown_deployment(
    monkeypatch: pytest.MonkeyPatch,
    migrated_database_url: str,
    fake_clock: FakeClock,
) -> None:
    """Return 1 when the runner reports the task as failed."""

    settings = _build_settings(migrated_database_url)
    runtime = _build_runtime(settings, _ClosableScriptedWorkflowClient(clock=fake_clock))
    monkeypatch.setattr(main_module, "bootstrap_create_runtime", lambda _settings: runtime)

    exit_code = main_module.main_stop_deployment(
        settings=settings,
        deployment_id=404,
        timeout_seconds=10,
        check_interval_seconds=5,
    )

    assert exit_code == 1


def test_bootstrap_create_runtime_registers_stopping_task(migrated_database_url: str) -> None:
    """Wire the GitHub adapter, repository and stopping handler from settings."""

    runtime = bootstrap_create_runtime(_build_settings(migrated_database_url))
    try:
        assert runtime.task_registry.job_registry_task_types() == ("stopping",)
        assert runtime.workflow_client.adapter_source_name() == "github_actions"
        assert runtime.db_health_service.db_check_health().status == "ok"
    finally:
        runtime.workflow_client.adapter_close()


def test_bootstrap_create_application_closes_workflow_client_on_shutdown(
    migrated_database_url: str,
    fake_clock: FakeClock,
) -> None:
    """Serve the API from a runtime and close the workflow client when the app stops."""

    workflow_client = _ClosableScriptedWorkflowClient(clock=fake_clock)
    runtime = _build_runtime(_build_settings(migrated_database_url), workflow_client)

    with TestClient(bootstrap_create_application(runtime)) as client:
        assert client.get("/health").json()["task_types"] == ["stopping"]
        assert workflow_client.closed is False

    assert workflow_client.closed is True
