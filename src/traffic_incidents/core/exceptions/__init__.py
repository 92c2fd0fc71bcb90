"""Core exception classes for the traffic incidents service.

This module provides a hierarchy of custom exceptions that are used
throughout the application to provide clear error handling and proper
HTTP status code mapping.
"""

from .application import ValidationError
from .base import (
    ApplicationError,
    DomainError,
    InfrastructureError,
    TrafficIncidentsError,
)
from .domain import (
    IncidentNotFoundError,
    IncidentNotVotableError,
    InvalidBoundingBoxError,
    InvalidIncidentError,
    InvalidLocationError,
    UnsupportedGeometryError,
)
from .infrastructure import (
    StoreUnavailableError,
    VendorCircuitOpenError,
    VendorFeedError,
    VendorTimeoutError,
)

__all__ = [
    # Base exceptions
    "TrafficIncidentsError",
    "ApplicationError",
    "DomainError",
    "InfrastructureError",
    # Domain exceptions
    "InvalidIncidentError",
    "InvalidLocationError",
    "InvalidBoundingBoxError",
    "IncidentNotFoundError",
    "IncidentNotVotableError",
    "UnsupportedGeometryError",
    # Infrastructure exceptions
    "VendorFeedError",
    "VendorTimeoutError",
    "VendorCircuitOpenError",
    "StoreUnavailableError",
    # Application exceptions
    "ValidationError",
]
