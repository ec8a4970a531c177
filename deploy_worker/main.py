"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either launches the FastAPI
service or runs one stopping task to completion.
"""

import argparse
import logging

import uvicorn

from deploy_worker.bootstrap import bootstrap_create_application, bootstrap_create_runtime
from deploy_worker.config import AppSettings, config_configure_logging, config_load_settings
from deploy_worker.jobs import job_build_stopping_task

logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with code 1 when the stop task fails.
    """

    argument_parser = argparse.ArgumentParser(description="Deployment worker runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "stop-deployment"),
        help="Runtime command: `api` starts server, `stop-deployment` stops one deployment and waits",
        type=str,
    )
    argument_parser.add_argument(
        "--deployment-id",
        dest="deployment_id",
        type=int,
        help="Deployment identifier for `stop-deployment`",
    )
    argument_parser.add_argument(
        "--timeout-seconds",
        dest="timeout_seconds",
        type=float,
        help="Optional teardown wait override for `stop-deployment`",
    )
    argument_parser.add_argument(
        "--check-interval-seconds",
        dest="check_interval_seconds",
        type=float,
        help="Optional teardown poll interval override for `stop-deployment`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    config_configure_logging(settings.log_level)

    if parsed_arguments.command == "stop-deployment":
        if parsed_arguments.deployment_id is None:
            argument_parser.error("--deployment-id is required for `stop-deployment`")
        raise SystemExit(
            main_stop_deployment(
                settings=settings,
                deployment_id=parsed_arguments.deployment_id,
                timeout_seconds=(
                    settings.stopping_workflow_timeout_seconds
                    if parsed_arguments.timeout_seconds is None
                    else parsed_arguments.timeout_seconds
                ),
                check_interval_seconds=(
                    settings.stopping_workflow_check_interval_seconds
                    if parsed_arguments.check_interval_seconds is None
                    else parsed_arguments.check_interval_seconds
                ),
            )
        )

    application = bootstrap_create_application(bootstrap_create_runtime(settings))
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_stop_deployment(
    settings: AppSettings,
    deployment_id: int,
    timeout_seconds: float,
    check_interval_seconds: float,
) -> int:
    """Submit one stopping task, run it, and map the outcome to an exit code.

    Args:
        settings: Validated runtime settings.
        deployment_id: Deployment identifier.
        timeout_seconds: Teardown wait duration.
        check_interval_seconds: Teardown poll interval.

    Returns:
        int: 0 when the deployment was stopped or skipped, 1 otherwise.

    Raises:
        InvalidJobTaskError: Raised when the wait overrides are not positive.
        DeploymentPersistenceError: Raised when the failed deployment cannot be re-read.
    """

    runtime = bootstrap_create_runtime(settings)
    try:
        runtime.job_runner.runner_submit(
            job_build_stopping_task(
                deployment_id=deployment_id,
                workflow_timeout_seconds=timeout_seconds,
                workflow_check_interval_seconds=check_interval_seconds,
            )
        )
        outcomes = runtime.job_runner.runner_drain()
    finally:
        runtime.workflow_client.adapter_close()

    exit_code = 0
    for outcome in outcomes:
        if outcome.outcome != "completed":
            logger.error("task %s failed: %s", outcome.task_id, outcome.error_message)
            exit_code = 1
        elif outcome.result is not None and outcome.result.status == "failed":
            deployment = runtime.deployment_repository.db_deployment_get_by_id(deployment_id)
            logger.error("deployment %s failed to stop: %s", deployment_id, deployment.error)
            exit_code = 1
    return exit_code


if __name__ == "__main__":
    main()
