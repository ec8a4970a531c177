"""Domain models used across application layer boundaries."""

from .deployment import (
    DeploymentRecord,
    DeploymentStatus,
    InstanceRecord,
    domain_deployment_is_stoppable,
)
from .models import HealthStatus
from .timeline import domain_build_stage_event

__all__ = [
    "DeploymentRecord",
    "DeploymentStatus",
    "HealthStatus",
    "InstanceRecord",
    "domain_build_stage_event",
    "domain_deployment_is_stoppable",
]
