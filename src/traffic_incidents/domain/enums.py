"""Domain enums for incident classification."""

from enum import Enum


class IncidentSource(str, Enum):
    """Where an incident record came from."""

    VENDOR = "vendor"
    USER = "user"


class IncidentType(str, Enum):
    """Closed set of incident types shown to map clients."""

    ACCIDENT = "accident"
    CONGESTION = "congestion"
    ROAD_CLOSED = "roadClosed"
    ROADWORKS = "roadworks"
    HAZARD = "hazard"
    POLICE = "police"
    FLOOD = "flood"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Human readable label used as the default description."""
        return _TYPE_LABELS[self]


class Severity(str, Enum):
    """Enumeration of incident severity levels."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"


class VoteKind(str, Enum):
    """Community trust votes on user reports."""

    VALIDATE = "validate"
    INVALIDATE = "invalidate"


_TYPE_LABELS = {
    IncidentType.ACCIDENT: "Accident",
    IncidentType.CONGESTION: "Congestion",
    IncidentType.ROAD_CLOSED: "Road closed",
    IncidentType.ROADWORKS: "Roadworks",
    IncidentType.HAZARD: "Hazard",
    IncidentType.POLICE: "Police",
    IncidentType.FLOOD: "Flooding",
    IncidentType.OTHER: "Incident",
}
