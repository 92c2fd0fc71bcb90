"""User-submitted incident reports and community trust voting."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import structlog

from ...config import Settings
from ...core.clock import utc_now
from ...core.exceptions import InvalidLocationError, ValidationError
from ...domain.entities import Incident
from ...domain.enums import IncidentType, Severity, VoteKind
from ...domain.repositories import IncidentRepository
from ...domain.value_objects import GeoPoint
from ..dtos import SubmitReportRequest

logger = structlog.get_logger(__name__)

ANONYMOUS_REPORTER = "anonymous"


class UserReportService:
    """
    Accepts, votes on and retires user reports.

    Input is fully validated before anything is written. Votes go through a
    single conditional update in the store, so concurrent invalidations
    can neither lose a count nor miss the deactivation threshold.
    """

    def __init__(self, repository: IncidentRepository, settings: Settings, clock: Callable[[], datetime] = utc_now):
        self._repository = repository
        self._settings = settings
        self._clock = clock
        self._logger = logger.bind(service="UserReportService")

    def submit(self, request: SubmitReportRequest, reporter_id: str | None = None) -> Incident:
        """Create a new active user report.

        Args:
            request: Report body
            reporter_id: Opaque identity of the caller

        Returns:
            Incident: The stored report

        Raises:
            ValidationError: If any field is missing or invalid; names the field
        """
        incident_type = self._parse_incident_type(request.incident_type)
        location = self._parse_location(request.coordinates)
        severity = self._parse_severity(request.severity)
        duration = self._parse_duration(request.duration_minutes)
        description = request.description.strip() if request.description and request.description.strip() else None

        incident = Incident.new_user_report(
            incident_type=incident_type,
            location=location,
            reporter_id=reporter_id or ANONYMOUS_REPORTER,
            now=self._clock(),
            duration=duration,
            severity=severity,
            description=description,
        )
        self._repository.add(incident)
        self._logger.info(
            "User report submitted",
            incident_id=incident.id,
            incident_type=incident_type.value,
            reporter_id=incident.reporter_id,
            expires_at=incident.expires_at.isoformat(),
        )
        return incident

    def validate(self, incident_id: str) -> Incident:
        """Add one validation vote. Never changes ``active``."""
        incident = self._repository.increment_vote(
            incident_id, VoteKind.VALIDATE, self._settings.report_invalidation_threshold, self._clock()
        )
        self._logger.info("Report validated", incident_id=incident_id, validations=incident.validations)
        return incident

    def invalidate(self, incident_id: str) -> Incident:
        """Add one invalidation vote; reaching the threshold deactivates the report for good."""
        incident = self._repository.increment_vote(
            incident_id, VoteKind.INVALIDATE, self._settings.report_invalidation_threshold, self._clock()
        )
        self._logger.info(
            "Report invalidated",
            incident_id=incident_id,
            invalidations=incident.invalidations,
            active=incident.active,
        )
        return incident

    def resolve(self, incident_id: str) -> Incident:
        """Administratively deactivate any incident, regardless of votes."""
        incident = self._repository.set_active(incident_id, False, self._clock())
        self._logger.info("Incident resolved", incident_id=incident_id, source=incident.source.value)
        return incident

    @staticmethod
    def _parse_incident_type(value: Any) -> IncidentType:
        allowed = [item.value for item in IncidentType]
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError("incidentType is required", field="incidentType", details={"allowed": allowed})
        try:
            return IncidentType(value)
        except ValueError as e:
            raise ValidationError(
                f"incidentType '{value}' is not one of: {', '.join(allowed)}",
                field="incidentType",
                details={"allowed": allowed},
            ) from e

    @staticmethod
    def _parse_location(value: Any) -> GeoPoint:
        if value is None:
            raise ValidationError("coordinates are required as [lon, lat]", field="coordinates")
        if not isinstance(value, list) or any(isinstance(item, bool) for item in value):
            raise ValidationError("coordinates must be a [lon, lat] array of numbers", field="coordinates")
        try:
            return GeoPoint.from_coordinates(value)
        except InvalidLocationError as e:
            raise ValidationError(f"coordinates are invalid: {e.message}", field="coordinates") from e

    @staticmethod
    def _parse_severity(value: Any) -> Severity:
        if value is None:
            return Severity.MODERATE
        try:
            return Severity(value)
        except ValueError as e:
            allowed = [item.value for item in Severity]
            raise ValidationError(
                f"severity '{value}' is not one of: {', '.join(allowed)}", field="severity", details={"allowed": allowed}
            ) from e

    def _parse_duration(self, value: Any) -> timedelta:
        if value is None:
            return timedelta(minutes=self._settings.report_default_duration_minutes)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or (isinstance(value, float) and not value.is_integer()):
            raise ValidationError("durationMinutes must be a whole number of minutes", field="durationMinutes")
        if value <= 0:
            raise ValidationError("durationMinutes must be greater than 0", field="durationMinutes")
        return timedelta(minutes=int(value))
