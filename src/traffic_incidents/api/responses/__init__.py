"""API response models, exceptions and handlers."""

from .exceptions import (
    APIException,
    ConflictException,
    NotFoundException,
    ServiceException,
    ValidationException,
    from_core_exception,
)
from .handlers import register_exception_handlers
from .models import (
    ErrorDetail,
    ErrorResponse,
    HealthData,
    HealthResponse,
    IncidentCollections,
    IncidentCollectionsResponse,
    IncidentData,
    IncidentListResponse,
    IncidentResponse,
    ResponseMetadata,
    ResponseStatus,
    SuccessResponse,
    create_error_response,
    create_success_response,
)

__all__ = [
    "APIException",
    "ConflictException",
    "NotFoundException",
    "ServiceException",
    "ValidationException",
    "from_core_exception",
    "register_exception_handlers",
    "ErrorDetail",
    "ErrorResponse",
    "HealthData",
    "HealthResponse",
    "IncidentCollections",
    "IncidentCollectionsResponse",
    "IncidentData",
    "IncidentListResponse",
    "IncidentResponse",
    "ResponseMetadata",
    "ResponseStatus",
    "SuccessResponse",
    "create_error_response",
    "create_success_response",
]
