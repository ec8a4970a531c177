"""Database health service for connectivity checks."""

import time

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from deploy_worker.domain import HealthStatus

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service backed by a lightweight engine round trip."""

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL with the password masked."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Run `SELECT 1` and report the round-trip latency.

        Returns:
            HealthStatus: Healthy status with latency detail.

        Raises:
            ConnectionError: Raised when the database cannot be reached.
        """

        started_at = time.monotonic()
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        latency_ms = int((time.monotonic() - started_at) * 1000)
        return HealthStatus(status="ok", detail=f"database connectivity verified in {latency_ms} ms")
