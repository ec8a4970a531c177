"""In-process job queue used by the CLI and API trigger surfaces."""

from __future__ import annotations

import threading
from collections import OrderedDict, deque
from typing import Final
from uuid import uuid4

from .interfaces import JobQueuePort, QueuedJobTask

DEFAULT_FINISHED_TASK_HISTORY: Final[int] = 1000


class InMemoryJobQueue(JobQueuePort):
    """Thread-safe FIFO queue without durability or retries.

    Failed tasks are kept with their last error for inspection and are never
    re-queued. Only the most recent `finished_task_history` completed or failed
    tasks are remembered; older ones report `unknown`.
    """

    def __init__(self, finished_task_history: int = DEFAULT_FINISHED_TASK_HISTORY):
        if finished_task_history < 1:
            raise ValueError("finished_task_history must be >= 1")

        self._lock = threading.Lock()
        self._finished_task_history = finished_task_history
        self._pending: deque[QueuedJobTask] = deque()
        self._in_flight: dict[str, QueuedJobTask] = {}
        # task id -> failure message, None for completed tasks; oldest first
        self._finished: OrderedDict[str, str | None] = OrderedDict()

    def queue_submit_task(self, serialized_task: str) -> str:
        if not serialized_task.strip():
            raise ValueError("serialized_task must not be blank")

        task = QueuedJobTask(task_id=str(uuid4()), serialized_task=serialized_task)
        with self._lock:
            self._pending.append(task)
        return task.task_id

    def queue_fetch_next(self) -> QueuedJobTask | None:
        with self._lock:
            if not self._pending:
                return None
            task = self._pending.popleft()
            self._in_flight[task.task_id] = task
            return task

    def queue_mark_complete(self, task_id: str) -> None:
        self._queue_finish(task_id, None)

    def queue_mark_failed(self, task_id: str, error_message: str) -> None:
        self._queue_finish(task_id, error_message)

    def queue_pending_count(self) -> int:
        """Return the number of tasks waiting to be fetched."""

        with self._lock:
            return len(self._pending)

    def queue_task_state(self, task_id: str) -> str:
        """Return `pending`, `running`, `completed`, `failed` or `unknown` for one task."""

        with self._lock:
            if task_id in self._finished:
                return "completed" if self._finished[task_id] is None else "failed"
            if task_id in self._in_flight:
                return "running"
            if any(task.task_id == task_id for task in self._pending):
                return "pending"
            return "unknown"

    def queue_failure_message(self, task_id: str) -> str | None:
        """Return the recorded failure message of one task, if any."""

        with self._lock:
            return self._finished.get(task_id)

    def _queue_finish(self, task_id: str, error_message: str | None) -> None:
        with self._lock:
            if self._in_flight.pop(task_id, None) is None:
                raise LookupError(f"task {task_id} is not in flight")
            self._finished[task_id] = error_message
            while len(self._finished) > self._finished_task_history:
                self._finished.popitem(last=False)
