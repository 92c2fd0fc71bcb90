"""
Reports Router

User report submission, listing, trust voting and administrative resolution.
Store-bound endpoints are plain ``def`` functions and run in the threadpool.
"""

from fastapi import APIRouter, Depends, Query, Request, status

from ...application.dtos import IncidentFilters, SubmitReportRequest
from ...application.services import QueryService, UserReportService
from ...config import get_logger
from ...domain.value_objects import BoundingBox
from ..dependencies import get_incident_filters, get_query_service, get_report_service, get_reporter_id
from ..responses import IncidentData, IncidentListResponse, IncidentResponse, create_success_response

router = APIRouter(tags=["reports"])
logger = get_logger(__name__)


@router.get("/reports", response_model=IncidentListResponse)
def list_reports(
    request: Request,
    bbox: str | None = Query(default=None, description="Optional minLon,minLat,maxLon,maxLat"),
    filters: IncidentFilters = Depends(get_incident_filters),
    query_service: QueryService = Depends(get_query_service),
) -> IncidentListResponse:
    """User reports matching the filters, newest first. Without ``active`` every state is returned."""
    box = BoundingBox.parse(bbox) if bbox is not None else None
    reports = query_service.list_reports(box, filters)
    return create_success_response(
        data=[IncidentData.from_entity(report) for report in reports],
        message="Reports retrieved successfully",
        results=len(reports),
        endpoint=request.url.path,
    )


@router.post("/report", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
def submit_report(
    request: Request,
    body: SubmitReportRequest,
    reporter_id: str | None = Depends(get_reporter_id),
    report_service: UserReportService = Depends(get_report_service),
) -> IncidentResponse:
    """Create a user report, active until ``now + durationMinutes``."""
    incident = report_service.submit(body, reporter_id)
    return create_success_response(
        data=IncidentData.from_entity(incident), message="Report created successfully", endpoint=request.url.path
    )


@router.post("/validate/{incident_id}", response_model=IncidentResponse)
def validate_report(
    request: Request, incident_id: str, report_service: UserReportService = Depends(get_report_service)
) -> IncidentResponse:
    incident = report_service.validate(incident_id)
    return create_success_response(
        data=IncidentData.from_entity(incident), message="Report validated", endpoint=request.url.path
    )


@router.post("/invalidate/{incident_id}", response_model=IncidentResponse)
def invalidate_report(
    request: Request, incident_id: str, report_service: UserReportService = Depends(get_report_service)
) -> IncidentResponse:
    incident = report_service.invalidate(incident_id)
    message = "Report invalidated" if incident.active else "Report invalidated and deactivated"
    return create_success_response(data=IncidentData.from_entity(incident), message=message, endpoint=request.url.path)


@router.patch("/resolve/{incident_id}", response_model=IncidentResponse)
def resolve_incident(
    request: Request, incident_id: str, report_service: UserReportService = Depends(get_report_service)
) -> IncidentResponse:
    """Mark an incident as no longer current, whatever its votes."""
    incident = report_service.resolve(incident_id)
    return create_success_response(
        data=IncidentData.from_entity(incident), message="Incident resolved", endpoint=request.url.path
    )
