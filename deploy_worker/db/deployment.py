"""Database service for deployment status persistence and instance lookup."""

from __future__ import annotations

from typing import Any

from sqlalchemy import DateTime, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from deploy_worker.domain import DeploymentRecord, DeploymentStatus, InstanceRecord

from .interfaces import DeploymentNotFoundError, DeploymentPersistenceError, DeploymentRepositoryPort

_DEPLOYMENT_SELECT_SQL = (
    "SELECT deployment_id, instance_id, status, error, created_at_utc, updated_at_utc "
    "FROM deployment "
    "WHERE deployment_id = :deployment_id"
)
_INSTANCE_SELECT_SQL = (
    "SELECT instance_id, instance_slug, created_at_utc "
    "FROM instance "
    "WHERE instance_id = :instance_id"
)


class SQLAlchemyDeploymentService(DeploymentRepositoryPort):
    """SQLAlchemy-backed deployment service.

    Every call runs in its own transaction. No row locking is taken between a
    read and a later write, so callers must keep a single writer per deployment.
    """

    def __init__(self, engine: Engine):
        """Initialize deployment persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_deployment_get_by_id(self, deployment_id: int) -> DeploymentRecord:
        """Fetch one deployment by id.

        Args:
            deployment_id: Deployment identifier.

        Returns:
            DeploymentRecord: Matching deployment.

        Raises:
            DeploymentNotFoundError: Raised when the deployment does not exist.
            DeploymentPersistenceError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                return self._db_fetch_deployment_or_raise(connection=connection, deployment_id=deployment_id)
        except SQLAlchemyError as error:
            raise DeploymentPersistenceError(f"failed to fetch deployment {deployment_id}") from error

    def db_deployment_update_status(self, deployment_id: int, status: DeploymentStatus) -> DeploymentRecord:
        """Persist a new status and keep the current error text.

        Args:
            deployment_id: Deployment identifier.
            status: New status.

        Returns:
            DeploymentRecord: Updated deployment.

        Raises:
            DeploymentNotFoundError: Raised when the deployment does not exist.
            DeploymentPersistenceError: Raised when the write fails.
        """

        return self._db_update_deployment(
            deployment_id=deployment_id,
            statement=(
                "UPDATE deployment SET "
                "status = :status, "
                "updated_at_utc = CURRENT_TIMESTAMP "
                "WHERE deployment_id = :deployment_id"
            ),
            parameters={"status": DeploymentStatus(status).value},
        )

    def db_deployment_set_status_and_error(
        self,
        deployment_id: int,
        status: DeploymentStatus,
        error_message: str | None,
    ) -> DeploymentRecord:
        """Persist a new status together with the error text.

        Args:
            deployment_id: Deployment identifier.
            status: New status.
            error_message: Error text to store, or None to clear it.

        Returns:
            DeploymentRecord: Updated deployment.

        Raises:
            DeploymentNotFoundError: Raised when the deployment does not exist.
            DeploymentPersistenceError: Raised when the write fails.
        """

        return self._db_update_deployment(
            deployment_id=deployment_id,
            statement=(
                "UPDATE deployment SET "
                "status = :status, "
                "error = :error, "
                "updated_at_utc = CURRENT_TIMESTAMP "
                "WHERE deployment_id = :deployment_id"
            ),
            parameters={"status": DeploymentStatus(status).value, "error": error_message},
        )

    def db_instance_get_by_id(self, instance_id: int) -> InstanceRecord:
        """Fetch one instance by id.

        Args:
            instance_id: Instance identifier.

        Returns:
            InstanceRecord: Matching instance.

        Raises:
            DeploymentNotFoundError: Raised when the instance does not exist.
            DeploymentPersistenceError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(_INSTANCE_SELECT_SQL).columns(created_at_utc=DateTime(timezone=True)),
                    {"instance_id": instance_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise DeploymentPersistenceError(f"failed to fetch instance {instance_id}") from error

        if row is None:
            raise DeploymentNotFoundError(f"instance {instance_id} not found")
        return InstanceRecord(
            instance_id=row["instance_id"],
            instance_slug=row["instance_slug"],
            created_at_utc=row["created_at_utc"],
        )

    def _db_update_deployment(
        self,
        deployment_id: int,
        statement: str,
        parameters: dict[str, Any],
    ) -> DeploymentRecord:
        """Run one deployment UPDATE and return the re-read row.

        Args:
            deployment_id: Deployment identifier.
            statement: UPDATE statement bound by `deployment_id`.
            parameters: Additional bind parameters.

        Returns:
            DeploymentRecord: Updated deployment.

        Raises:
            DeploymentNotFoundError: Raised when no row was updated.
            DeploymentPersistenceError: Raised when the write fails.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(text(statement), {**parameters, "deployment_id": deployment_id})
                if result.rowcount == 0:
                    raise DeploymentNotFoundError(f"deployment {deployment_id} not found")
                return self._db_fetch_deployment_or_raise(connection=connection, deployment_id=deployment_id)
        except SQLAlchemyError as error:
            raise DeploymentPersistenceError(f"failed to update deployment {deployment_id}") from error

    def _db_fetch_deployment_or_raise(self, connection, deployment_id: int) -> DeploymentRecord:
        """Fetch one deployment on an open connection and raise when missing.

        Args:
            connection: Active SQLAlchemy connection.
            deployment_id: Deployment identifier.

        Returns:
            DeploymentRecord: Matching row.

        Raises:
            DeploymentNotFoundError: Raised when row cannot be found.
        """

        row = connection.execute(
            text(_DEPLOYMENT_SELECT_SQL).columns(
                created_at_utc=DateTime(timezone=True),
                updated_at_utc=DateTime(timezone=True),
            ),
            {"deployment_id": deployment_id},
        ).mappings().first()
        if row is None:
            raise DeploymentNotFoundError(f"deployment {deployment_id} not found")
        return self._map_deployment_record(row)

    def _map_deployment_record(self, row: Any) -> DeploymentRecord:
        """Map SQLAlchemy row mapping to typed deployment record.

        Args:
            row: SQLAlchemy mapping row.

        Returns:
            DeploymentRecord: Typed deployment record.

        Raises:
            DeploymentPersistenceError: Raised when the stored status is unknown.
        """

        try:
            status = DeploymentStatus(row["status"])
        except ValueError as error:
            raise DeploymentPersistenceError(
                f"deployment {row['deployment_id']} has unknown status '{row['status']}'"
            ) from error

        return DeploymentRecord(
            deployment_id=row["deployment_id"],
            instance_id=row["instance_id"],
            status=status,
            error=row["error"],
            created_at_utc=row["created_at_utc"],
            updated_at_utc=row["updated_at_utc"],
        )
