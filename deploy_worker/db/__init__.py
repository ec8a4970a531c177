"""Database layer package for all SQL and persistence boundaries."""

from .deployment import SQLAlchemyDeploymentService
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
    DatabaseHealthPort,
    DeploymentNotFoundError,
    DeploymentPersistenceError,
    DeploymentRepositoryPort,
)
from .session import db_create_engine

__all__ = [
    "DatabaseHealthPort",
    "DeploymentNotFoundError",
    "DeploymentPersistenceError",
    "DeploymentRepositoryPort",
    "SQLAlchemyDatabaseHealthService",
    "SQLAlchemyDeploymentService",
    "db_create_engine",
]
