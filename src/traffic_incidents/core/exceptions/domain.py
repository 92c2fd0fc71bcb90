"""Domain-specific exception classes."""

from .base import DomainError


class InvalidIncidentError(DomainError):
    """Raised when incident data breaks an entity invariant."""

    pass


class InvalidLocationError(DomainError):
    """Raised when a point lies outside valid longitude/latitude ranges."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_LOCATION")


class InvalidBoundingBoxError(DomainError):
    """Raised when a bounding box cannot be parsed or is inverted."""

    def __init__(self, message: str):
        super().__init__(message, "INVALID_BBOX")


class IncidentNotFoundError(DomainError):
    """Raised when no incident exists for the given identifier."""

    def __init__(self, incident_id: str):
        super().__init__(f"Incident with ID '{incident_id}' not found", "INCIDENT_NOT_FOUND", {"incident_id": incident_id})
        self.incident_id = incident_id


class IncidentNotVotableError(DomainError):
    """Raised when a vote targets a vendor-sourced incident."""

    def __init__(self, incident_id: str):
        super().__init__(
            f"Incident '{incident_id}' comes from the traffic feed and does not accept votes",
            "INCIDENT_NOT_VOTABLE",
            {"incident_id": incident_id},
        )
        self.incident_id = incident_id


class UnsupportedGeometryError(InvalidIncidentError):
    """Raised when a feed record has a geometry that cannot be reduced to a point."""

    def __init__(self, geometry_type: str | None):
        super().__init__(f"Unsupported geometry type: {geometry_type}", "UNSUPPORTED_GEOMETRY", {"geometry_type": geometry_type})
        self.geometry_type = geometry_type
