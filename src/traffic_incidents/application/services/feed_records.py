"""Conversion of raw traffic feed features into incident candidates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ...core.exceptions import InvalidIncidentError, InvalidLocationError, UnsupportedGeometryError
from ...domain.entities import Incident
from ...domain.enums import IncidentType, Severity
from ...domain.services import TaxonomyMapper
from ...domain.value_objects import GeoPoint
from ...infrastructure.vendor import FeedGeometry, FeedIncident


@dataclass(frozen=True)
class FeedCandidate:
    """A feed feature reduced to what matching and insertion need."""

    incident_type: IncidentType
    severity: Severity
    location: GeoPoint
    active: bool
    end_time: datetime | None
    description: str | None

    @classmethod
    def from_raw(cls, raw: Any, mapper: TaxonomyMapper) -> FeedCandidate:
        """Parse one raw feature.

        Raises:
            UnsupportedGeometryError: Geometry is neither Point nor LineString
            InvalidIncidentError: The feature is malformed
        """
        try:
            feature = FeedIncident.model_validate(raw)
        except PydanticValidationError as e:
            raise InvalidIncidentError("Malformed feed record", "MALFORMED_FEED_RECORD", {"errors": e.error_count()}) from e

        properties = feature.properties
        incident_type, severity = mapper.map(properties.icon_category, properties.magnitude_of_delay)
        return cls(
            incident_type=incident_type,
            severity=severity,
            location=representative_point(feature.geometry),
            active=True if properties.active is None else properties.active,
            end_time=properties.end_time,
            description=feature.description,
        )

    def to_incident(self, now: datetime, fallback_ttl: timedelta, persistent: bool = True) -> Incident:
        """Build a vendor incident expiring at the feed end time or ``now + fallback_ttl``.

        Raises:
            InvalidIncidentError: The feed end time is not after ``now``
        """
        return Incident.new_vendor_record(
            incident_type=self.incident_type,
            location=self.location,
            severity=self.severity,
            now=now,
            expires_at=self.end_time or now + fallback_ttl,
            active=self.active,
            description=self.description,
            persistent=persistent,
        )


def representative_point(geometry: FeedGeometry | None) -> GeoPoint:
    """Point geometries give their own coordinates, LineStrings their first vertex.

    Raises:
        UnsupportedGeometryError: Any other geometry type
        InvalidIncidentError: Missing or malformed coordinates
    """
    if geometry is None:
        raise InvalidIncidentError("Feed record has no geometry", "MALFORMED_FEED_RECORD")

    coordinates = geometry.coordinates
    if geometry.type == "Point":
        pair = coordinates
    elif geometry.type == "LineString":
        if not isinstance(coordinates, list) or not coordinates:
            raise InvalidIncidentError("LineString without vertices", "MALFORMED_FEED_RECORD")
        pair = coordinates[0]
    else:
        raise UnsupportedGeometryError(geometry.type)

    if not isinstance(pair, list):
        raise InvalidIncidentError("Feed coordinates are not a [lon, lat] pair", "MALFORMED_FEED_RECORD")
    try:
        # altitude, when present, is dropped
        return GeoPoint.from_coordinates(pair[:2])
    except InvalidLocationError as e:
        raise InvalidIncidentError(f"Invalid feed coordinates: {e.message}", "MALFORMED_FEED_RECORD") from e
