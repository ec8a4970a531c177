"""Stage timeline event helpers for job diagnostics."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured timeline event for a job stage transition.

    Args:
        stage: Stage name (for example `teardown` or `wait`).
        status: Stage status marker (`started`, `polling`, `completed`, `failed`).
        details: Optional structured details object.

    Returns:
        dict[str, object]: Timeline event stamped with the current UTC time.

    Raises:
        ValueError: Raised when stage or status is blank.
    """

    if not stage.strip():
        raise ValueError("stage must not be blank")
    if not status.strip():
        raise ValueError("status must not be blank")

    stage_event: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        stage_event["details"] = dict(details)
    return stage_event
