"""Serialized task descriptors, dispatch table, and queue-driven job runner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .interfaces import JobExecutionResult, JobOrchestratorPort, JobQueuePort

logger = logging.getLogger(__name__)

JobFactory = Callable[[Any], JobOrchestratorPort]


class UnknownJobTaskError(LookupError):
    """Raised when a task descriptor names a task type with no registered handler."""


class InvalidJobTaskError(ValueError):
    """Raised when a serialized task or its payload fails validation."""


class JobTaskEnvelope(BaseModel):
    """Tagged task descriptor stored in the job queue.

    Attributes:
        task_type: Dispatch tag naming the registered handler.
        payload: Handler-specific parameters, validated by the handler's payload model.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    task_type: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class JobRunOutcome:
    """Runner-level outcome of one dequeued task.

    Attributes:
        task_id: Queue-assigned task identifier.
        task_type: Dispatch tag, None when the descriptor could not be decoded.
        outcome: `completed` when acknowledged, `failed` when reported for retry.
        result: Job result for completed tasks.
        error_message: Failure description for failed tasks.
    """

    task_id: str
    task_type: str | None
    outcome: str
    result: JobExecutionResult | None = None
    error_message: str | None = None


def job_task_serialize(envelope: JobTaskEnvelope) -> str:
    """Serialize one task descriptor to JSON."""

    return envelope.model_dump_json()


def job_task_deserialize(serialized_task: str) -> JobTaskEnvelope:
    """Decode one JSON task descriptor.

    Args:
        serialized_task: JSON produced by `job_task_serialize`.

    Returns:
        JobTaskEnvelope: Decoded descriptor.

    Raises:
        InvalidJobTaskError: Raised when the JSON is malformed or fails validation.
    """

    try:
        return JobTaskEnvelope.model_validate_json(serialized_task)
    except ValidationError as error:
        raise InvalidJobTaskError(f"invalid task descriptor: {error}") from error


class JobTaskRegistry:
    """Dispatch table mapping task types to payload models and job factories."""

    def __init__(self):
        self._handlers: dict[str, tuple[type[BaseModel], JobFactory]] = {}

    def job_registry_register(
        self,
        task_type: str,
        payload_model: type[BaseModel],
        factory: JobFactory,
    ) -> None:
        """Register the handler for one task type.

        Args:
            task_type: Dispatch tag.
            payload_model: Pydantic model validating the task payload.
            factory: Callable building a runnable job from a validated payload.

        Returns:
            None: Registry is updated as side effect.

        Raises:
            ValueError: Raised when the tag is blank or already registered.
        """

        normalized_task_type = task_type.strip()
        if not normalized_task_type:
            raise ValueError("task_type must not be blank")
        if normalized_task_type in self._handlers:
            raise ValueError(f"task_type={normalized_task_type} is already registered")
        self._handlers[normalized_task_type] = (payload_model, factory)

    def job_registry_task_types(self) -> tuple[str, ...]:
        """Return registered task types in sorted order."""

        return tuple(sorted(self._handlers))

    def job_registry_validate_payload(self, envelope: JobTaskEnvelope) -> BaseModel:
        """Validate the payload of one descriptor against its handler's model.

        Args:
            envelope: Task descriptor.

        Returns:
            BaseModel: Validated payload instance.

        Raises:
            UnknownJobTaskError: Raised when no handler is registered for the tag.
            InvalidJobTaskError: Raised when the payload fails validation.
        """

        payload_model, _ = self._job_registry_lookup(envelope.task_type)
        try:
            return payload_model.model_validate(envelope.payload)
        except ValidationError as error:
            raise InvalidJobTaskError(f"invalid payload for task_type={envelope.task_type}: {error}") from error

    def job_registry_build(self, envelope: JobTaskEnvelope) -> JobOrchestratorPort:
        """Build the runnable job for one descriptor.

        Args:
            envelope: Task descriptor.

        Returns:
            JobOrchestratorPort: Job ready for `job_execute(task_type)`.

        Raises:
            UnknownJobTaskError: Raised when no handler is registered for the tag.
            InvalidJobTaskError: Raised when the payload fails validation.
        """

        payload = self.job_registry_validate_payload(envelope)
        _, factory = self._job_registry_lookup(envelope.task_type)
        return factory(payload)

    def _job_registry_lookup(self, task_type: str) -> tuple[type[BaseModel], JobFactory]:
        handler = self._handlers.get(task_type)
        if handler is None:
            raise UnknownJobTaskError(f"no handler registered for task_type={task_type}")
        return handler


class JobRunner:
    """Execute queued tasks one at a time through the registry.

    A job that returns normally is acknowledged on the queue, whatever status
    its result carries. A job that raises is reported as failed so the queue can
    apply its own retry policy.
    """

    def __init__(self, queue: JobQueuePort, registry: JobTaskRegistry):
        if queue is None:
            raise ValueError("queue must not be None")
        if registry is None:
            raise ValueError("registry must not be None")
        self._queue = queue
        self._registry = registry

    def runner_submit(self, envelope: JobTaskEnvelope) -> str:
        """Validate and enqueue one task descriptor.

        Args:
            envelope: Task descriptor.

        Returns:
            str: Queue-assigned task identifier.

        Raises:
            UnknownJobTaskError: Raised when the task type is not registered.
            InvalidJobTaskError: Raised when the payload fails validation.
        """

        self._registry.job_registry_validate_payload(envelope)
        task_id = self._queue.queue_submit_task(job_task_serialize(envelope))
        logger.info("submitted task %s (%s)", task_id, envelope.task_type)
        return task_id

    def runner_run_next(self) -> JobRunOutcome | None:
        """Fetch and execute the next queued task.

        Returns:
            JobRunOutcome | None: Outcome of the executed task, or None when the queue is empty.

        Raises:
            RuntimeError: Raised only when the queue itself fails.
        """

        queued_task = self._queue.queue_fetch_next()
        if queued_task is None:
            return None

        task_type: str | None = None
        try:
            envelope = job_task_deserialize(queued_task.serialized_task)
            task_type = envelope.task_type
            job = self._registry.job_registry_build(envelope)
            result = job.job_execute(job_name=envelope.task_type)
        except Exception as error:  # pylint: disable=broad-exception-caught
            error_message = f"{type(error).__name__}: {error}"
            logger.exception("task %s (%s) failed", queued_task.task_id, task_type)
            self._queue.queue_mark_failed(queued_task.task_id, error_message)
            return JobRunOutcome(
                task_id=queued_task.task_id,
                task_type=task_type,
                outcome="failed",
                error_message=error_message,
            )

        self._queue.queue_mark_complete(queued_task.task_id)
        logger.info("task %s (%s) completed with status '%s'", queued_task.task_id, task_type, result.status)
        return JobRunOutcome(
            task_id=queued_task.task_id,
            task_type=task_type,
            outcome="completed",
            result=result,
        )

    def runner_drain(self) -> list[JobRunOutcome]:
        """Execute queued tasks until the queue is empty.

        Returns:
            list[JobRunOutcome]: Outcomes in execution order.

        Raises:
            RuntimeError: Raised only when the queue itself fails.
        """

        outcomes: list[JobRunOutcome] = []
        while True:
            outcome = self.runner_run_next()
            if outcome is None:
                return outcomes
            outcomes.append(outcome)
