"""Domain repository interfaces."""

from .incident_repository import IncidentCriteria, IncidentRepository

__all__ = ["IncidentCriteria", "IncidentRepository"]
