"""Application DTOs."""

from .incident_dtos import IncidentFilters, QueryResult, SubmitReportRequest, SyncReport

__all__ = ["IncidentFilters", "QueryResult", "SubmitReportRequest", "SyncReport"]
