"""API router package for endpoint composition."""

from .deployments import api_create_deployments_router
from .health import api_create_health_router

__all__ = ["api_create_deployments_router", "api_create_health_router"]
