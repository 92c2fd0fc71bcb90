"""API routers."""

from . import health, incidents, reports

__all__ = ["health", "incidents", "reports"]
