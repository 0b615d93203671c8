"""API router package for endpoint composition."""

from .auto_deny import api_create_auto_deny_router
from .health import api_create_health_router

__all__ = ["api_create_auto_deny_router", "api_create_health_router"]
