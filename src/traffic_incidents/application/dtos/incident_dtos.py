"""Incident DTOs for request/response handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ...domain.entities import Incident
from ...domain.enums import IncidentType


class SubmitReportRequest(BaseModel):
    """Body of ``POST /report``.

    Fields are loosely typed on purpose: :class:`UserReportService` validates
    them and reports exactly which one is wrong.
    """

    model_config = ConfigDict(populate_by_name=True)

    incident_type: str | None = Field(default=None, alias="incidentType", description="One of the incident types")
    coordinates: Any = Field(default=None, description="[lon, lat]")
    description: str | None = Field(default=None, max_length=1000, description="Free text, defaults to the type label")
    severity: str | None = Field(default=None, description="low, moderate, high or severe; defaults to moderate")
    duration_minutes: Any = Field(default=None, alias="durationMinutes", description="Lifetime in minutes, default 60")


@dataclass(frozen=True)
class IncidentFilters:
    """Optional query filters shared by ``/incidents`` and ``/reports``."""

    incident_type: IncidentType | None = None
    user_id: str | None = None
    active: bool | None = None


@dataclass(frozen=True)
class QueryResult:
    """Vendor and user incidents as two collections, each newest first."""

    vendor: list[Incident] = field(default_factory=list)
    user: list[Incident] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.vendor) + len(self.user)


@dataclass
class SyncReport:
    """Outcome of one sync tick."""

    fetched: int = 0
    created: int = 0
    refreshed: int = 0
    skipped: int = 0
    # outside the coverage area, or inactive with no stored counterpart
    ignored: int = 0
    failed: int = 0
    aborted: str | None = None
    started_at: str | None = None
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "fetched": self.fetched,
            "created": self.created,
            "refreshed": self.refreshed,
            "skipped": self.skipped,
            "ignored": self.ignored,
            "failed": self.failed,
            "aborted": self.aborted,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
        }
