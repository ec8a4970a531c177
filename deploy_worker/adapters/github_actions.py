"""GitHub Actions adapter for dispatching and polling teardown workflow runs."""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Final

import httpx

from deploy_worker.domain import InstanceRecord

from .interfaces import WorkflowClientPort, WorkflowRunHandle, WorkflowRunState, WorkflowRunStatus
from .workflow_errors import WorkflowCallError

logger = logging.getLogger(__name__)


class GithubActionsWorkflowAdapter(WorkflowClientPort):
    """Adapter implementation for GitHub Actions `workflow_dispatch` teardown runs.

    GitHub does not return the run id of a dispatched workflow, so the adapter
    snapshots the known run ids before dispatching and then looks for a new run
    of the same workflow on the dispatched ref whose title contains the instance
    slug as a whole token. The cleanup workflow must set `run-name` to include
    `${{ inputs.instance_slug }}`, otherwise no run is ever matched.
    """

    _USER_AGENT: Final[str] = "deploy-worker/1.0 (Python/httpx)"
    _API_VERSION: Final[str] = "2022-11-28"
    _INSTANCE_INPUT_NAME: Final[str] = "instance_slug"
    _RUN_LIST_PAGE_SIZE: Final[int] = 30
    _SUCCESS_CONCLUSION: Final[str] = "success"
    _COMPLETED_STATUS: Final[str] = "completed"

    def __init__(
        self,
        token: str,
        repository_owner: str,
        repository_name: str,
        workflow_file: str = "cleanup.yml",
        workflow_ref: str = "main",
        base_url: str = "https://api.github.com",
        request_timeout_seconds: float = 30.0,
        run_lookup_attempts: int = 5,
        run_lookup_interval_seconds: float = 2.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize GitHub Actions adapter.

        Args:
            token: GitHub token with `actions:write` permission on the repository.
            repository_owner: Owner of the repository hosting the teardown workflow.
            repository_name: Repository hosting the teardown workflow.
            workflow_file: Workflow file name or numeric id.
            workflow_ref: Git ref used for dispatch.
            base_url: GitHub REST API base URL.
            request_timeout_seconds: HTTP request timeout in seconds.
            run_lookup_attempts: Attempts to locate the dispatched run.
            run_lookup_interval_seconds: Delay before each run lookup attempt.
            transport: Optional httpx transport override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_token = token.strip()
        normalized_owner = repository_owner.strip()
        normalized_repository = repository_name.strip()
        normalized_workflow_file = workflow_file.strip()
        normalized_ref = workflow_ref.strip()
        normalized_base_url = base_url.strip()

        if not normalized_token:
            raise ValueError("token must not be blank")
        if not normalized_owner:
            raise ValueError("repository_owner must not be blank")
        if not normalized_repository:
            raise ValueError("repository_name must not be blank")
        if not normalized_workflow_file:
            raise ValueError("workflow_file must not be blank")
        if not normalized_ref:
            raise ValueError("workflow_ref must not be blank")
        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")
        if run_lookup_attempts < 1:
            raise ValueError("run_lookup_attempts must be >= 1")
        if run_lookup_interval_seconds < 0:
            raise ValueError("run_lookup_interval_seconds must be >= 0")

        self._repository_path = f"/repos/{normalized_owner}/{normalized_repository}"
        self._workflow_file = normalized_workflow_file
        self._workflow_ref = normalized_ref
        self._run_lookup_attempts = run_lookup_attempts
        self._run_lookup_interval_seconds = run_lookup_interval_seconds
        self._http_client = httpx.Client(
            base_url=normalized_base_url.rstrip("/"),
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {normalized_token}",
                "User-Agent": self._USER_AGENT,
                "X-GitHub-Api-Version": self._API_VERSION,
            },
            timeout=request_timeout_seconds,
            transport=transport,
        )

    def adapter_source_name(self) -> str:
        """Return stable adapter source label.

        Returns:
            str: Source identifier.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return "github_actions"

    def adapter_close(self) -> None:
        """Release pooled HTTP connections.

        Returns:
            None: Connections are closed as side effect.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        self._http_client.close()

    def adapter_start_teardown(self, instance: InstanceRecord) -> WorkflowRunHandle:
        """Dispatch the cleanup workflow for one instance and locate the new run titled with its slug.

        Args:
            instance: Instance whose infrastructure must be released.

        Returns:
            WorkflowRunHandle: Handle of the dispatched run.

        Raises:
            WorkflowCallError: Raised for transport failures, rejected dispatch or
                when the dispatched run cannot be located.
        """

        instance_slug = instance.instance_slug.strip()
        if not instance_slug:
            raise WorkflowCallError("instance slug must not be blank")

        # Whole-token match so `demo` does not claim the run of `demo-2`.
        slug_pattern = re.compile(rf"(?<![\w.-]){re.escape(instance_slug)}(?![\w.-])")
        known_run_ids = {run_payload["id"] for run_payload in self._adapter_list_dispatch_runs()}

        self._adapter_request_json(
            method="POST",
            path=f"{self._workflow_path()}/dispatches",
            json_body={
                "ref": self._workflow_ref,
                "inputs": {self._INSTANCE_INPUT_NAME: instance_slug},
            },
        )
        logger.info(
            "dispatched workflow '%s' on ref '%s' for instance '%s'",
            self._workflow_file,
            self._workflow_ref,
            instance_slug,
        )

        for lookup_attempt in range(self._run_lookup_attempts):
            if self._run_lookup_interval_seconds > 0:
                time.sleep(self._run_lookup_interval_seconds)

            for run_payload in self._adapter_list_dispatch_runs():
                if run_payload["id"] in known_run_ids:
                    continue
                if not slug_pattern.search(str(run_payload.get("display_title") or "")):
                    continue
                logger.info(
                    "located workflow run %s after %s lookup attempt(s)",
                    run_payload["id"],
                    lookup_attempt + 1,
                )
                return WorkflowRunHandle(run_id=run_payload["id"], html_url=run_payload.get("html_url"))

        raise WorkflowCallError(
            f"dispatched workflow '{self._workflow_file}' run for instance '{instance_slug}' was not found after "
            f"{self._run_lookup_attempts} lookup attempt(s)"
        )

    def adapter_poll_status(self, run_handle: WorkflowRunHandle) -> WorkflowRunStatus:
        """Fetch one workflow run and normalize its status.

        Args:
            run_handle: Handle returned by `adapter_start_teardown`.

        Returns:
            WorkflowRunStatus: Pending, succeeded, or failed with a cause.

        Raises:
            WorkflowCallError: Raised for transport failures or malformed payloads.
        """

        run_payload = self._adapter_request_json(
            method="GET",
            path=f"{self._repository_path}/actions/runs/{run_handle.run_id}",
            run_id=run_handle.run_id,
        )
        if not isinstance(run_payload, dict):
            raise WorkflowCallError("workflow run payload must be a JSON object", run_id=run_handle.run_id)

        run_status = str(run_payload.get("status") or "").strip()
        if run_status != self._COMPLETED_STATUS:
            return WorkflowRunStatus(state=WorkflowRunState.PENDING)

        conclusion = str(run_payload.get("conclusion") or "unknown").strip()
        if conclusion == self._SUCCESS_CONCLUSION:
            return WorkflowRunStatus(state=WorkflowRunState.SUCCEEDED)

        run_url = run_payload.get("html_url") or run_handle.html_url
        cause = f"workflow run {run_handle.run_id} completed with conclusion '{conclusion}'"
        if run_url:
            cause = f"{cause} ({run_url})"
        return WorkflowRunStatus(state=WorkflowRunState.FAILED, cause=cause)

    def _workflow_path(self) -> str:
        return f"{self._repository_path}/actions/workflows/{self._workflow_file}"

    def _adapter_list_dispatch_runs(self) -> list[dict[str, Any]]:
        """List recent `workflow_dispatch` runs of the cleanup workflow on the configured ref.

        Returns:
            list[dict[str, Any]]: Run payloads that carry an integer `id`.

        Raises:
            WorkflowCallError: Raised for transport failures or malformed payloads.
        """

        runs_payload = self._adapter_request_json(
            method="GET",
            path=f"{self._workflow_path()}/runs",
            params={
                "event": "workflow_dispatch",
                "branch": self._workflow_ref,
                "per_page": str(self._RUN_LIST_PAGE_SIZE),
            },
        )
        if not isinstance(runs_payload, dict) or not isinstance(runs_payload.get("workflow_runs"), list):
            raise WorkflowCallError("workflow run list payload is missing `workflow_runs`")

        return [
            run_payload
            for run_payload in runs_payload["workflow_runs"]
            if isinstance(run_payload, dict) and isinstance(run_payload.get("id"), int)
        ]

    def _adapter_request_json(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        run_id: int | None = None,
    ) -> Any:
        """Execute one GitHub API request and decode its JSON body.

        Args:
            method: HTTP method.
            path: API path relative to the base URL.
            params: Optional query string parameters.
            json_body: Optional JSON request body.
            run_id: Optional run id attached to raised errors.

        Returns:
            Any: Decoded JSON body, or None for empty responses.

        Raises:
            WorkflowCallError: Raised for timeouts, transport failures, non-success
                HTTP status and undecodable bodies.
        """

        try:
            response = self._http_client.request(method, path, params=params, json=json_body)
            response.raise_for_status()
        except httpx.TimeoutException as error:
            raise WorkflowCallError(f"GitHub API {method} {path} timed out", run_id=run_id) from error
        except httpx.HTTPStatusError as error:
            raise WorkflowCallError(
                f"GitHub API {method} {path} returned HTTP {error.response.status_code}",
                run_id=run_id,
            ) from error
        except httpx.HTTPError as error:
            raise WorkflowCallError(f"GitHub API {method} {path} transport failed", run_id=run_id) from error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as error:
            raise WorkflowCallError(f"GitHub API {method} {path} returned invalid JSON", run_id=run_id) from error
