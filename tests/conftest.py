"""Shared fixtures: a migrated SQLite database and a deterministic wait clock."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Iterator

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import Engine, text

from deploy_worker.db import db_create_engine
from deploy_worker.jobs import workflow_wait as workflow_wait_module
from workflow_doubles import FakeClock

_REPOSITORY_ROOT = Path(__file__).resolve().parents[1]

SeedDeployment = Callable[..., None]


@pytest.fixture
def migrated_database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Apply all Alembic revisions to a temporary SQLite database.

    Args:
        tmp_path: Pytest temporary directory fixture.
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        str: SQLAlchemy URL of the migrated database.

    Raises:
        RuntimeError: Raised by Alembic when a revision fails.
    """

    database_url = f"sqlite:///{tmp_path / 'deploy_worker.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)

    alembic_config = Config()
    alembic_config.set_main_option("script_location", str(_REPOSITORY_ROOT / "alembic"))
    command.upgrade(alembic_config, "head")
    return database_url


@pytest.fixture
def migrated_engine(migrated_database_url: str) -> Iterator[Engine]:
    """Yield an engine bound to the migrated SQLite database."""

    engine = db_create_engine(migrated_database_url)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def seed_deployment(migrated_engine: Engine) -> SeedDeployment:
    """Return a helper inserting one instance and its deployment row.

    Args:
        migrated_engine: Engine bound to the migrated database.

    Returns:
        SeedDeployment: Callable taking deployment id, instance id, slug, status and error.

    Raises:
        SQLAlchemyError: Raised by the returned helper when inserts fail.
    """

    def _seed(
        deployment_id: int,
        status: str = "running",
        error: str | None = None,
        instance_id: int | None = None,
        instance_slug: str | None = None,
    ) -> None:
        resolved_instance_id = instance_id if instance_id is not None else deployment_id
        resolved_slug = instance_slug or f"instance-{resolved_instance_id}"
        with migrated_engine.begin() as connection:
            connection.execute(
                text("INSERT INTO instance (instance_id, instance_slug) VALUES (:instance_id, :instance_slug)"),
                {"instance_id": resolved_instance_id, "instance_slug": resolved_slug},
            )
            connection.execute(
                text(
                    "INSERT INTO deployment (deployment_id, instance_id, status, error) "
                    "VALUES (:deployment_id, :instance_id, :status, :error)"
                ),
                {
                    "deployment_id": deployment_id,
                    "instance_id": resolved_instance_id,
                    "status": status,
                    "error": error,
                },
            )

    return _seed


@pytest.fixture
def fake_clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Replace the wait loop's clock and sleep with a deterministic fake.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        FakeClock: Clock shared by the wait loop and test assertions.

    Raises:
        RuntimeError: This fixture does not raise runtime errors.
    """

    clock = FakeClock()
    monkeypatch.setattr(
        workflow_wait_module,
        "time",
        SimpleNamespace(monotonic=clock.monotonic, sleep=clock.sleep),
    )
    return clock
