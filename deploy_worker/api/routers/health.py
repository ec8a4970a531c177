"""Health endpoint router composition for app and database checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from deploy_worker.db import DatabaseHealthPort
from deploy_worker.jobs import JobTaskRegistry


def api_create_health_router(db_health_service: DatabaseHealthPort, task_registry: JobTaskRegistry) -> APIRouter:
    """Create health-check router with database connectivity and job handler status.

    Args:
        db_health_service: DB-layer health service interface.
        task_registry: Job dispatch table reported as registered task types.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")
    if task_registry is None:
        raise ValueError("task_registry must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application, database and job handler state.

        Returns:
            JSONResponse: 200 when the database is reachable, 503 otherwise.
        """

        payload: dict[str, object] = {
            "app": "up",
            "target": db_health_service.db_connection_label(),
            "task_types": list(task_registry.job_registry_task_types()),
        }
        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload.update({"status": "degraded", "database": "down", "detail": str(error)})
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        payload.update({"status": "ok", "database": db_health.status, "detail": db_health.detail})
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
