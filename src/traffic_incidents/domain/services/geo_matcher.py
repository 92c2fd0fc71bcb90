"""Identity matching between incoming feed records and stored vendor incidents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..entities import Incident
from ..enums import IncidentType
from ..repositories import IncidentRepository
from ..value_objects import GeoPoint


class GeoMatcher(ABC):
    """Decides whether a candidate ``(type, point)`` is an already stored event.

    Two records are the same event when their incident types are identical
    and their points are exactly equal. When several stored records match,
    the most recently updated one wins.
    """

    @abstractmethod
    def match(self, incident_type: IncidentType, point: GeoPoint) -> str | None:
        """Return the id of the matching stored record, or ``None`` for a new event."""

    def load(self, records: Iterable[Incident]) -> None:
        """Seed the candidate pool. Matchers backed directly by the store ignore this."""

    def add(self, record: Incident) -> None:
        """Register a record inserted after :meth:`load`."""


class LinearGeoMatcher(GeoMatcher):
    """In-memory pool scanned once per candidate."""

    def __init__(self, records: Iterable[Incident] = ()):
        self._pool: list[Incident] = []
        self.load(records)

    def __len__(self) -> int:
        return len(self._pool)

    def load(self, records: Iterable[Incident]) -> None:
        self._pool = [record for record in records if record.id is not None]

    def add(self, record: Incident) -> None:
        if record.id is not None:
            self._pool.append(record)

    def match(self, incident_type: IncidentType, point: GeoPoint) -> str | None:
        best: Incident | None = None
        for record in self._pool:
            if record.incident_type is not incident_type or record.location != point:
                continue
            if best is None or record.updated_at > best.updated_at:
                best = record
        return best.id if best else None


class RepositoryGeoMatcher(GeoMatcher):
    """Delegates the lookup to the store's ``(incident_type, active)`` index."""

    def __init__(self, repository: IncidentRepository):
        self._repository = repository

    def match(self, incident_type: IncidentType, point: GeoPoint) -> str | None:
        candidates = self._repository.find_by_type_and_point(incident_type, point)
        return candidates[0].id if candidates else None
