"""Deployment and instance domain records with stopping-path status rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeploymentStatus(str, Enum):
    """Lifecycle status of one deployment.

    Only the stopping path (`running` -> `stopping` -> `stopped` | `failed`) is
    driven by this service; the remaining statuses are owned by other jobs.
    """

    CREATED = "created"
    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


_STOPPABLE_STATUSES = frozenset({DeploymentStatus.RUNNING})


@dataclass(frozen=True)
class InstanceRecord:
    """Infrastructure-side identity of the instance owned by one deployment.

    Attributes:
        instance_id: Unique instance identifier.
        instance_slug: Instance name passed to the teardown workflow.
        created_at_utc: Row creation timestamp in UTC.
    """

    instance_id: int
    instance_slug: str
    created_at_utc: datetime


@dataclass(frozen=True)
class DeploymentRecord:
    """Persisted state of one deployment.

    Attributes:
        deployment_id: Externally assigned deployment identifier.
        instance_id: Identifier of the associated instance.
        status: Current lifecycle status.
        error: Human-readable failure cause, set only when status is `failed`.
        created_at_utc: Row creation timestamp in UTC.
        updated_at_utc: Last status change timestamp in UTC.
    """

    deployment_id: int
    instance_id: int
    status: DeploymentStatus
    error: str | None
    created_at_utc: datetime
    updated_at_utc: datetime


def domain_deployment_is_stoppable(status: DeploymentStatus) -> bool:
    """Return whether a stop request may act on a deployment in this status.

    Args:
        status: Current deployment status.

    Returns:
        bool: True only for deployments that are currently running.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return status in _STOPPABLE_STATUSES
