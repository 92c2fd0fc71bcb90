"""
FastAPI dependencies module.

Services live on ``app.state.container``; these functions hand them to
endpoints and parse the shared query parameters.
"""

from fastapi import Depends, Header, Query, Request

from ..application.dtos import IncidentFilters
from ..application.services import QueryService, UserReportService
from ..container import ServiceContainer
from ..core.exceptions import ValidationError
from ..domain.enums import IncidentType


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_report_service(container: ServiceContainer = Depends(get_container)) -> UserReportService:
    return container.report_service


def get_query_service(container: ServiceContainer = Depends(get_container)) -> QueryService:
    return container.query_service


def get_reporter_id(x_user_id: str | None = Header(default=None, max_length=128)) -> str | None:
    """
    Opaque reporter identity forwarded by the API gateway.

    Returns:
        str | None: The ``X-User-Id`` header value, if any
    """
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


def parse_incident_type(value: str | None) -> IncidentType | None:
    """Parse the ``incidentType`` query parameter.

    Raises:
        ValidationError: If the value is not a known incident type
    """
    if value is None or not value.strip():
        return None
    try:
        return IncidentType(value.strip())
    except ValueError as e:
        allowed = [item.value for item in IncidentType]
        raise ValidationError(
            f"incidentType '{value}' is not one of: {', '.join(allowed)}", field="incidentType", details={"allowed": allowed}
        ) from e


def get_incident_filters(
    incident_type: str | None = Query(default=None, alias="incidentType", description="Restrict to one incident type"),
    user_id: str | None = Query(default=None, alias="userId", description="Only reports from this reporter"),
    active: bool | None = Query(
        default=None, description="true: currently relevant only; false: resolved, invalidated or expired"
    ),
) -> IncidentFilters:
    return IncidentFilters(incident_type=parse_incident_type(incident_type), user_id=user_id, active=active)
