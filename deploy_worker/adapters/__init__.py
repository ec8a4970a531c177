"""Adapter layer package for external workflow integration boundaries."""

from .github_actions import GithubActionsWorkflowAdapter
from .interfaces import WorkflowClientPort, WorkflowRunHandle, WorkflowRunState, WorkflowRunStatus
from .workflow_errors import (
    WorkflowAdapterError,
    WorkflowCallError,
    WorkflowRunFailedError,
    WorkflowWaitTimeoutError,
)

__all__ = [
    "GithubActionsWorkflowAdapter",
    "WorkflowAdapterError",
    "WorkflowCallError",
    "WorkflowClientPort",
    "WorkflowRunFailedError",
    "WorkflowRunHandle",
    "WorkflowRunState",
    "WorkflowRunStatus",
    "WorkflowWaitTimeoutError",
]
