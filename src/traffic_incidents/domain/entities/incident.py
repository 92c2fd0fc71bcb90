"""Core incident entity for the domain layer."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ...core.exceptions import InvalidIncidentError
from ..enums import IncidentSource, IncidentType, Severity
from ..value_objects import GeoPoint


@dataclass(frozen=True)
class Incident:
    """A traffic incident, either pulled from the feed or reported by a user.

    Vendor records carry no vote counters (``validations`` and
    ``invalidations`` are ``None``) and no reporter. Transient records built
    from a live feed call have ``id = None`` because they are never persisted.
    """

    id: str | None
    source: IncidentSource
    incident_type: IncidentType
    location: GeoPoint
    description: str
    severity: Severity
    active: bool
    expires_at: datetime
    created_at: datetime
    updated_at: datetime
    reporter_id: str | None = None
    validations: int | None = None
    invalidations: int | None = None

    @classmethod
    def new_user_report(
        cls,
        incident_type: IncidentType,
        location: GeoPoint,
        reporter_id: str,
        now: datetime,
        duration: timedelta,
        severity: Severity = Severity.MODERATE,
        description: str | None = None,
    ) -> Incident:
        """Create a fresh user report with zero votes that is active until ``now + duration``."""
        if duration <= timedelta(0):
            raise InvalidIncidentError("Report duration must be positive", "INVALID_DURATION")
        return cls(
            id=str(uuid.uuid4()),
            source=IncidentSource.USER,
            incident_type=incident_type,
            location=location,
            description=description or incident_type.label,
            severity=severity,
            active=True,
            expires_at=now + duration,
            created_at=now,
            updated_at=now,
            reporter_id=reporter_id,
            validations=0,
            invalidations=0,
        )

    @classmethod
    def new_vendor_record(
        cls,
        incident_type: IncidentType,
        location: GeoPoint,
        severity: Severity,
        now: datetime,
        expires_at: datetime,
        active: bool = True,
        description: str | None = None,
        persistent: bool = True,
    ) -> Incident:
        """Create a vendor record; ``persistent=False`` builds a transient one without id."""
        if expires_at <= now:
            raise InvalidIncidentError("Incident must expire after it is created", "INVALID_EXPIRY")
        return cls(
            id=str(uuid.uuid4()) if persistent else None,
            source=IncidentSource.VENDOR,
            incident_type=incident_type,
            location=location,
            description=description or incident_type.label,
            severity=severity,
            active=active,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

    def is_relevant(self, now: datetime) -> bool:
        """Whether the incident is currently shown to clients."""
        return self.active and now < self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Convert entity to the JSON shape returned by the API."""
        return {
            "id": self.id,
            "source": self.source.value,
            "incidentType": self.incident_type.value,
            "coordinates": self.location.to_list(),
            "description": self.description,
            "severity": self.severity.value,
            "active": self.active,
            "expiresAt": self.expires_at.isoformat(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "reporterId": self.reporter_id,
            "validations": self.validations,
            "invalidations": self.invalidations,
        }
