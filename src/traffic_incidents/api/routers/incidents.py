"""
Incidents Router

Bounding-box view combining traffic feed and user incidents for map clients.
"""

import time

from fastapi import APIRouter, Depends, Query, Request

from ...application.dtos import IncidentFilters
from ...application.services import QueryService
from ...config import get_logger
from ...domain.value_objects import BoundingBox
from ..dependencies import get_incident_filters, get_query_service
from ..responses import (
    IncidentCollections,
    IncidentCollectionsResponse,
    IncidentData,
    create_success_response,
)

router = APIRouter(tags=["incidents"])
logger = get_logger(__name__)


@router.get("/incidents", response_model=IncidentCollectionsResponse)
async def get_incidents(
    request: Request,
    bbox: str | None = Query(default=None, description="minLon,minLat,maxLon,maxLat"),
    filters: IncidentFilters = Depends(get_incident_filters),
    query_service: QueryService = Depends(get_query_service),
) -> IncidentCollectionsResponse:
    """
    Currently relevant incidents inside a bounding box.

    Vendor and user incidents are returned as two collections, newest first.
    When live refresh is enabled, feed incidents not yet synced are appended
    to the vendor collection with a null id.
    """
    start_time = time.perf_counter()
    box = BoundingBox.parse(bbox)

    result = await query_service.query_with_live_refresh(box, filters)

    logger.info(
        "Incidents queried",
        bbox=box.to_query_param(),
        incident_type=filters.incident_type.value if filters.incident_type else None,
        vendor=len(result.vendor),
        user=len(result.user),
    )
    return create_success_response(
        data=IncidentCollections(
            vendor=[IncidentData.from_entity(incident) for incident in result.vendor],
            user=[IncidentData.from_entity(incident) for incident in result.user],
        ),
        message="Incidents retrieved successfully",
        results=result.total,
        processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        endpoint=request.url.path,
    )
