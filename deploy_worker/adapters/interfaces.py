"""Typed interfaces for adapter-layer responsibilities."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from deploy_worker.domain import InstanceRecord


@dataclass(frozen=True)
class WorkflowRunHandle:
    """Opaque reference to one invocation of the external workflow.

    Attributes:
        run_id: Upstream run identifier used for status polling.
        html_url: Optional browser URL of the run for diagnostics.
    """

    run_id: int
    html_url: str | None = None


class WorkflowRunState(str, Enum):
    """Normalized state of one external workflow run."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkflowRunStatus:
    """Result contract for one workflow status poll.

    Attributes:
        state: Normalized run state.
        cause: Upstream failure description when state is `failed`.
    """

    state: WorkflowRunState
    cause: str | None = None


class WorkflowClientPort(Protocol):
    """Port definition for starting and inspecting remote teardown runs."""

    def adapter_source_name(self) -> str:
        """Return adapter source identifier for diagnostics.

        Returns:
            str: Human-readable upstream source identifier.

        Raises:
            RuntimeError: Raised when source metadata is unavailable.
        """

    def adapter_start_teardown(self, instance: InstanceRecord) -> WorkflowRunHandle:
        """Start one remote teardown run for the given instance.

        Args:
            instance: Instance whose infrastructure must be released.

        Returns:
            WorkflowRunHandle: Handle of the started run.

        Raises:
            WorkflowCallError: Raised when the run could not be started.
        """

    def adapter_poll_status(self, run_handle: WorkflowRunHandle) -> WorkflowRunStatus:
        """Query the current status of one remote run.

        Args:
            run_handle: Handle returned by `adapter_start_teardown`.

        Returns:
            WorkflowRunStatus: Normalized run status.

        Raises:
            WorkflowCallError: Raised when the status query fails.
        """
