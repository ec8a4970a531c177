"""Tests for SQLAlchemy deployment persistence against a migrated SQLite database."""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from deploy_worker.db import (
    DeploymentNotFoundError,
    DeploymentPersistenceError,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyDeploymentService,
    db_create_engine,
)
from deploy_worker.domain import DeploymentStatus


def test_db_migration_creates_deployment_and_instance_tables(migrated_engine: Engine) -> None:
    """Create both tables with the columns the repository reads.

    Args:
        migrated_engine: Engine bound to the migrated SQLite database.

    Returns:
        None: Assertions validate table shape.

    Raises:
        AssertionError: Raised when tables or columns are missing.
    """

    inspector = inspect(migrated_engine)

    assert {"deployment", "instance", "alembic_version"} <= set(inspector.get_table_names())
    deployment_columns = {column["name"] for column in inspector.get_columns("deployment")}
    assert deployment_columns == {
        "deployment_id",
        "instance_id",
        "status",
        "error",
        "created_at_utc",
        "updated_at_utc",
    }
    instance_columns = {column["name"] for column in inspector.get_columns("instance")}
    assert instance_columns == {"instance_id", "instance_slug", "created_at_utc"}


def test_db_deployment_get_by_id_maps_row(migrated_engine: Engine, seed_deployment) -> None:
    """Map a stored row to a typed deployment record."""

    seed_deployment(deployment_id=1, status="running", instance_id=7, instance_slug="demo-instance")
    service = SQLAlchemyDeploymentService(engine=migrated_engine)

    deployment = service.db_deployment_get_by_id(1)

    assert deployment.deployment_id == 1
    assert deployment.instance_id == 7
    assert deployment.status is DeploymentStatus.RUNNING
    assert deployment.error is None
    assert deployment.created_at_utc is not None


def test_db_deployment_get_by_id_raises_for_unknown_id(migrated_engine: Engine) -> None:
    """Raise not-found for ids with no row."""

    service = SQLAlchemyDeploymentService(engine=migrated_engine)

    with pytest.raises(DeploymentNotFoundError, match="deployment 404 not found"):
        service.db_deployment_get_by_id(404)


def test_db_deployment_update_status_keeps_error_text(migrated_engine: Engine, seed_deployment) -> None:
    """Change status only and leave the stored error untouched.

    Args:
        migrated_engine: Engine bound to the migrated SQLite database.
        seed_deployment: Row seeding helper fixture.

    Returns:
        None: Assertions validate the status-only write.

    Raises:
        AssertionError: Raised when the error text changes.
    """

    seed_deployment(deployment_id=2, status="running", error="earlier note")
    service = SQLAlchemyDeploymentService(engine=migrated_engine)

    updated = service.db_deployment_update_status(2, DeploymentStatus.STOPPING)

    assert updated.status is DeploymentStatus.STOPPING
    assert updated.error == "earlier note"
    assert service.db_deployment_get_by_id(2).status is DeploymentStatus.STOPPING


def test_db_deployment_set_status_and_error_sets_and_clears_error(migrated_engine: Engine, seed_deployment) -> None:
    """Write the error text with a failed status and clear it with a stopped status."""

    seed_deployment(deployment_id=3, status="stopping")
    service = SQLAlchemyDeploymentService(engine=migrated_engine)

    failed = service.db_deployment_set_status_and_error(
        3,
        DeploymentStatus.FAILED,
        "failed to stop deployment: boom",
    )
    assert failed.status is DeploymentStatus.FAILED
    assert failed.error == "failed to stop deployment: boom"

    stopped = service.db_deployment_set_status_and_error(3, DeploymentStatus.STOPPED, None)
    assert stopped.status is DeploymentStatus.STOPPED
    assert stopped.error is None


def test_db_deployment_updates_raise_not_found_for_unknown_id(migrated_engine: Engine) -> None:
    """Raise not-found when an update matches no row."""

    service = SQLAlchemyDeploymentService(engine=migrated_engine)

    with pytest.raises(DeploymentNotFoundError):
        service.db_deployment_update_status(404, DeploymentStatus.STOPPING)
    with pytest.raises(DeploymentNotFoundError):
        service.db_deployment_set_status_and_error(404, DeploymentStatus.FAILED, "boom")


def test_db_instance_get_by_id_returns_slug_and_raises_for_unknown(migrated_engine: Engine, seed_deployment) -> None:
    """Return the instance slug used for teardown and raise for unknown ids."""

    seed_deployment(deployment_id=4, instance_id=9, instance_slug="gnosis-archive")
    service = SQLAlchemyDeploymentService(engine=migrated_engine)

    instance = service.db_instance_get_by_id(9)

    assert instance.instance_slug == "gnosis-archive"
    with pytest.raises(DeploymentNotFoundError, match="instance 10 not found"):
        service.db_instance_get_by_id(10)


def test_db_migration_rejects_unknown_status_values(migrated_engine: Engine, seed_deployment) -> None:
    """Refuse status values outside the lifecycle through the check constraint.

    Args:
        migrated_engine: Engine bound to the migrated SQLite database.
        seed_deployment: Row seeding helper fixture.

    Returns:
        None: Assertions validate the status constraint.

    Raises:
        AssertionError: Raised when an unknown status is stored.
    """

    seed_deployment(deployment_id=5, status="running")

    with pytest.raises(IntegrityError):
        with migrated_engine.begin() as connection:
            connection.execute(text("UPDATE deployment SET status = 'paused' WHERE deployment_id = 5"))

    service = SQLAlchemyDeploymentService(engine=migrated_engine)
    assert service.db_deployment_get_by_id(5).status is DeploymentStatus.RUNNING


def test_db_deployment_wraps_storage_errors(tmp_path) -> None:
    """Raise a persistence error when the schema is missing."""

    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    service = SQLAlchemyDeploymentService(engine=engine)

    with pytest.raises(DeploymentPersistenceError, match="failed to fetch deployment 1"):
        service.db_deployment_get_by_id(1)
    with pytest.raises(DeploymentPersistenceError, match="failed to update deployment 1"):
        service.db_deployment_set_status_and_error(1, DeploymentStatus.FAILED, "boom")
    engine.dispose()


def test_db_health_reports_latency_and_connection_failures(migrated_engine: Engine, tmp_path) -> None:
    """Report healthy status for a reachable database and raise for an unreachable one."""

    health = SQLAlchemyDatabaseHealthService(engine=migrated_engine).db_check_health()

    assert health.status == "ok"
    assert health.detail.startswith("database connectivity verified in")

    unreachable_engine = db_create_engine(f"sqlite:///{tmp_path / 'missing' / 'nested' / 'db.sqlite'}")
    with pytest.raises(ConnectionError, match="database connectivity check failed"):
        SQLAlchemyDatabaseHealthService(engine=unreachable_engine).db_check_health()
    unreachable_engine.dispose()


def test_db_create_engine_rejects_blank_url() -> None:
    """Reject blank database URLs."""

    with pytest.raises(ValueError, match="database_url"):
        db_create_engine("  ")
