"""
ORM model for the ``incidents`` table.

The location is stored as two double precision columns and queried with
explicit range predicates.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Double, Index, Integer, String, Text
from sqlalchemy.types import TypeDecorator

from ...domain.entities import Incident
from ...domain.enums import IncidentSource, IncidentType, Severity
from ...domain.value_objects import GeoPoint
from .session import Base


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetimes normalised to UTC on the way in and out."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            # SQLite drops the offset
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class IncidentRecord(Base):
    """One incident, vendor or user sourced."""

    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True)
    source = Column(String(16), nullable=False)
    incident_type = Column(String(32), nullable=False)
    lon = Column(Double, nullable=False)
    lat = Column(Double, nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(UTCDateTime, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    # user reports only
    reporter_id = Column(String(128), nullable=True)
    validations = Column(Integer, nullable=True)
    invalidations = Column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_incidents_type_active", "incident_type", "active"),
        Index("ix_incidents_source", "source"),
        Index("ix_incidents_reporter_id", "reporter_id"),
        Index("ix_incidents_expires_at", "expires_at"),
        Index("ix_incidents_lon_lat", "lon", "lat"),
    )

    @classmethod
    def from_entity(cls, incident: Incident) -> "IncidentRecord":
        return cls(
            id=incident.id,
            source=incident.source.value,
            incident_type=incident.incident_type.value,
            lon=incident.location.lon,
            lat=incident.location.lat,
            description=incident.description,
            severity=incident.severity.value,
            active=incident.active,
            expires_at=incident.expires_at,
            created_at=incident.created_at,
            updated_at=incident.updated_at,
            reporter_id=incident.reporter_id,
            validations=incident.validations,
            invalidations=incident.invalidations,
        )

    def to_entity(self) -> Incident:
        return Incident(
            id=self.id,
            source=IncidentSource(self.source),
            incident_type=IncidentType(self.incident_type),
            location=GeoPoint(lon=self.lon, lat=self.lat),
            description=self.description,
            severity=Severity(self.severity),
            active=bool(self.active),
            expires_at=_utc(self.expires_at),
            created_at=_utc(self.created_at),
            updated_at=_utc(self.updated_at),
            reporter_id=self.reporter_id,
            validations=self.validations,
            invalidations=self.invalidations,
        )


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
