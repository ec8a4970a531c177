"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
"""

from typing import Protocol

from deploy_worker.domain import DeploymentRecord, DeploymentStatus, HealthStatus, InstanceRecord


class DeploymentNotFoundError(LookupError):
    """Raised when a deployment or its instance does not exist."""


class DeploymentPersistenceError(RuntimeError):
    """Raised when deployment storage cannot be read or written."""


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class DeploymentRepositoryPort(Protocol):
    """Port definition for deployment and instance persistence."""

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

    def db_deployment_set_status_and_error(
        self,
        deployment_id: int,
        status: DeploymentStatus,
        error_message: str | None,
    ) -> DeploymentRecord:
        """Persist a new status together with the error text (None clears it).

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
