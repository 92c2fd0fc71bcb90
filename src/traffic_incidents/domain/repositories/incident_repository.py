"""Abstract repository interface for incident persistence operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ..entities import Incident
from ..enums import IncidentSource, IncidentType, VoteKind
from ..value_objects import BoundingBox, GeoPoint


@dataclass(frozen=True)
class IncidentCriteria:
    """Read filters for :meth:`IncidentRepository.search`.

    ``active=True`` selects relevant records (``active`` and not expired at
    ``now``), ``active=False`` selects the complement (resolved, invalidated
    or expired) and ``active=None`` disables the relevance filter.
    """

    now: datetime
    bbox: BoundingBox | None = None
    source: IncidentSource | None = None
    incident_type: IncidentType | None = None
    reporter_id: str | None = None
    active: bool | None = True


class IncidentRepository(ABC):
    """
    Abstract repository interface for incident persistence operations.

    Spatial predicates are explicit bounding-box range checks on the stored
    point. Every mutation is a single statement so concurrent writers to the
    same record never lose updates.
    """

    @abstractmethod
    def add(self, incident: Incident) -> Incident:
        """Persist a new incident.

        Args:
            incident: The incident entity to save; must carry an id

        Returns:
            The stored incident

        Raises:
            StoreUnavailableError: When the store cannot be reached
        """

    @abstractmethod
    def get(self, incident_id: str) -> Incident | None:
        """Find an incident by its ID.

        Args:
            incident_id: The unique identifier of the incident

        Returns:
            The incident entity if found, None otherwise
        """

    @abstractmethod
    def find_active_in_box(self, bbox: BoundingBox, source: IncidentSource) -> list[Incident]:
        """Return records of ``source`` inside ``bbox`` whose ``active`` flag is set.

        Expiry is not applied here; this is the candidate pool for matching.
        """

    @abstractmethod
    def find_by_type_and_point(self, incident_type: IncidentType, point: GeoPoint) -> list[Incident]:
        """Return active vendor records with this type at exactly this point, most recently updated first."""

    @abstractmethod
    def search(self, criteria: IncidentCriteria) -> list[Incident]:
        """Find incidents matching ``criteria``, newest ``created_at`` first.

        Args:
            criteria: Box, source, type, reporter and relevance filters

        Returns:
            List of incidents matching the criteria
        """

    @abstractmethod
    def increment_vote(self, incident_id: str, kind: VoteKind, threshold: int, now: datetime) -> Incident:
        """Atomically apply one vote to a user report.

        An invalidation that brings ``invalidations`` to ``threshold`` or more
        sets ``active = False`` in the same statement.

        Raises:
            IncidentNotFoundError: When no incident has this id
            IncidentNotVotableError: When the incident is vendor-sourced
        """

    @abstractmethod
    def refresh_vendor(self, incident_id: str, feed_active: bool, now: datetime) -> Incident:
        """Re-sync a matched vendor record with the feed.

        Sets ``active = feed_active AND expires_at > now`` and bumps
        ``updated_at``; ``created_at`` and ``expires_at`` are unchanged.

        Raises:
            IncidentNotFoundError: When no incident has this id
        """

    @abstractmethod
    def set_active(self, incident_id: str, active: bool, now: datetime) -> Incident:
        """Unconditionally set the ``active`` flag.

        Raises:
            IncidentNotFoundError: When no incident has this id
        """

    @abstractmethod
    def ping(self) -> None:
        """Check the store is reachable.

        Raises:
            StoreUnavailableError: When the store cannot be reached
        """
