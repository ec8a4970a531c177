"""Project-native typed exceptions for external workflow failures."""

from __future__ import annotations


class WorkflowAdapterError(Exception):
    """Base exception for external workflow failures.

    Attributes:
        run_id: Optional identifier of the workflow run involved.
    """

    def __init__(self, message: str, run_id: int | None = None):
        super().__init__(message)
        self.run_id = run_id


class WorkflowCallError(WorkflowAdapterError, ConnectionError):
    """Teardown could not be started or its status could not be queried."""


class WorkflowRunFailedError(WorkflowAdapterError, RuntimeError):
    """Remote workflow run reached a terminal state other than success."""


class WorkflowWaitTimeoutError(WorkflowAdapterError, TimeoutError):
    """Remote workflow run did not finish within the configured wait."""
