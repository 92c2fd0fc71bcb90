"""
Standardized API response models.

Every endpoint answers with the same envelope: ``status``, ``message``,
``data`` (or ``errors``) and ``metadata``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ... import __version__
from ...domain.entities import Incident

# Generic type for response data
T = TypeVar("T")


class ResponseStatus(str, Enum):
    """Standard response status values."""

    SUCCESS = "success"
    ERROR = "error"


def _current_request_id() -> str:
    """Request id bound by the logging middleware, or a fresh one outside a request."""
    return structlog.contextvars.get_contextvars().get("request_id") or f"req_{uuid4().hex[:12]}"


class ResponseMetadata(BaseModel):
    """Tracking information included in all API responses."""

    request_id: str = Field(
        default_factory=_current_request_id, description="Unique request identifier for correlation"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(), description="Response timestamp in ISO 8601 format"
    )
    processing_time_ms: float | None = Field(default=None, description="Processing time in milliseconds", ge=0.0)
    api_version: str = Field(default=__version__, description="API version used for this response")
    endpoint: str | None = Field(default=None, description="API endpoint that generated this response")


class BaseResponse(BaseModel, Generic[T]):
    """Base response model providing consistent structure for all API responses."""

    status: ResponseStatus = Field(description="success or error")
    message: str = Field(description="Human-readable status message")
    data: T | None = Field(None, description="Response payload data")
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata, description="Response metadata")


class SuccessResponse(BaseResponse[T]):
    """Success response; ``results`` counts the items of list payloads."""

    status: ResponseStatus = Field(default=ResponseStatus.SUCCESS, description="Success status")
    message: str = Field(default="Operation completed successfully", description="Success message")
    results: int | None = Field(default=None, description="Number of items in list payloads")


class ErrorDetail(BaseModel):
    """
    One problem with a request.

    ``field`` names the offending input when the error is tied to one.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_code": "VALIDATION_ERROR",
                "error_type": "ValidationError",
                "field": "incidentType",
                "description": "incidentType 'meteor' is not one of: accident, congestion, ...",
                "suggestion": "Use one of the documented incident types",
            }
        }
    )

    error_code: str = Field(description="Machine-readable error code for programmatic handling")
    error_type: str = Field(description="Error category/type for classification")
    field: str | None = Field(None, description="Specific field that caused the error (if applicable)")
    description: str = Field(description="Human-readable error description")
    suggestion: str | None = Field(None, description="Suggested resolution or next steps")


class ErrorResponse(BaseResponse[None]):
    """Error response model for failed operations."""

    status: ResponseStatus = Field(default=ResponseStatus.ERROR, description="Error status")
    errors: list[ErrorDetail] = Field(default_factory=list, description="List of error details")
    data: None = Field(default=None, description="No data in error responses")


# Domain-specific response models


class IncidentData(BaseModel):
    """One incident as exposed to map clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = Field(description="Incident id; null for live feed records not stored yet")
    source: str
    incident_type: str
    coordinates: list[float] = Field(description="[lon, lat]")
    description: str
    severity: str
    active: bool
    expires_at: datetime
    created_at: datetime
    updated_at: datetime
    reporter_id: str | None = None
    validations: int | None = None
    invalidations: int | None = None

    @classmethod
    def from_entity(cls, incident: Incident) -> "IncidentData":
        return cls.model_validate(incident.to_dict())


class IncidentCollections(BaseModel):
    """Vendor and user incidents, each newest first."""

    vendor: list[IncidentData] = Field(default_factory=list)
    user: list[IncidentData] = Field(default_factory=list)


class HealthData(BaseModel):
    """Store reachability plus the sync job status and its last tick report."""

    service_status: str = Field(description="healthy or unhealthy")
    components: dict[str, Any] = Field(default_factory=dict, description="store and sync_job status")
    uptime_seconds: float | None = Field(None, description="Service uptime in seconds")
    version: str | None = Field(None, description="Application version")


# Typed response aliases
IncidentResponse = SuccessResponse[IncidentData]
IncidentListResponse = SuccessResponse[list[IncidentData]]
IncidentCollectionsResponse = SuccessResponse[IncidentCollections]
HealthResponse = SuccessResponse[HealthData]


def _metadata(request_id: str | None, endpoint: str | None, processing_time_ms: float | None = None) -> ResponseMetadata:
    fields: dict[str, Any] = {"endpoint": endpoint, "processing_time_ms": processing_time_ms}
    if request_id:
        fields["request_id"] = request_id
    return ResponseMetadata(**fields)


def create_success_response(
    data: T,
    message: str = "Operation completed successfully",
    results: int | None = None,
    request_id: str | None = None,
    processing_time_ms: float | None = None,
    endpoint: str | None = None,
) -> SuccessResponse[T]:
    """
    Wrap ``data`` in the success envelope.

    Args:
        data: Payload
        message: Human-readable outcome
        results: Item count, set for list and collection payloads
        request_id: Overrides the id bound by the request logging middleware
        processing_time_ms: Handler time, when measured
        endpoint: Request path
    """
    return SuccessResponse[T](
        data=data,
        message=message,
        results=results,
        metadata=_metadata(request_id, endpoint, processing_time_ms),
    )


def create_error_response(
    message: str,
    errors: list[ErrorDetail],
    request_id: str | None = None,
    endpoint: str | None = None,
) -> ErrorResponse:
    """Wrap ``errors`` in the error envelope; ``message`` repeats the first error for humans."""
    return ErrorResponse(message=message, errors=errors, metadata=_metadata(request_id, endpoint))
