"""Read side: bounding-box queries over vendor and user incidents."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import structlog

from ...config import Settings
from ...core.clock import utc_now
from ...core.exceptions import InvalidIncidentError, VendorFeedError, VendorTimeoutError
from ...domain.entities import Incident
from ...domain.enums import IncidentSource
from ...domain.repositories import IncidentCriteria, IncidentRepository
from ...domain.services import LinearGeoMatcher, TaxonomyMapper
from ...domain.value_objects import BoundingBox
from ...infrastructure.vendor import CircuitBreaker, TrafficFeedClient
from ..dtos import IncidentFilters, QueryResult
from .feed_records import FeedCandidate

logger = structlog.get_logger(__name__)


class QueryService:
    """
    Answers "what is happening in this box".

    Reads never write: a record that is flagged active but already expired is
    filtered out, not deactivated. The relevance predicate is evaluated by
    the store.
    """

    def __init__(
        self,
        repository: IncidentRepository,
        settings: Settings,
        feed_client: TrafficFeedClient | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        mapper: TaxonomyMapper | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repository = repository
        self._settings = settings
        self._feed_client = feed_client
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name="traffic_feed_live",
            failure_threshold=settings.vendor_circuit_failure_threshold,
            recovery_timeout=settings.vendor_circuit_recovery_seconds,
        )
        self._mapper = mapper or TaxonomyMapper()
        self._clock = clock
        self._fallback_ttl = timedelta(minutes=settings.vendor_default_ttl_minutes)

    @property
    def live_refresh_enabled(self) -> bool:
        return self._settings.query_live_vendor and self._feed_client is not None

    def query(self, bbox: BoundingBox, filters: IncidentFilters | None = None) -> QueryResult:
        """Incidents inside ``bbox`` from the store, as vendor and user collections.

        Args:
            bbox: Area to search, edges inclusive
            filters: ``incident_type``; ``user_id`` restricts to that reporter's
                reports and drops vendor records; ``active=False`` returns the
                resolved, invalidated or expired records instead

        Returns:
            QueryResult: Both collections, newest ``created_at`` first
        """
        filters = filters or IncidentFilters()
        now = self._clock()
        active = False if filters.active is False else True

        vendor: list[Incident] = []
        if filters.user_id is None:
            vendor = self._repository.search(
                IncidentCriteria(
                    now=now,
                    bbox=bbox,
                    source=IncidentSource.VENDOR,
                    incident_type=filters.incident_type,
                    active=active,
                )
            )
        user = self._repository.search(
            IncidentCriteria(
                now=now,
                bbox=bbox,
                source=IncidentSource.USER,
                incident_type=filters.incident_type,
                reporter_id=filters.user_id,
                active=active,
            )
        )
        return QueryResult(vendor=vendor, user=user)

    async def query_with_live_refresh(self, bbox: BoundingBox, filters: IncidentFilters | None = None) -> QueryResult:
        """Like :meth:`query`, plus feed incidents not yet in the store.

        Live features that match no stored vendor record are appended as
        transient records with ``id = None``. Feed problems are logged and the
        stored result is returned as is.
        """
        filters = filters or IncidentFilters()
        result = await asyncio.to_thread(self.query, bbox, filters)
        if not self.live_refresh_enabled or filters.user_id is not None or filters.active is False:
            return result

        try:
            raw_records = await self._circuit_breaker.call(self._fetch_live, bbox)
        except VendorFeedError as e:
            logger.warning(
                "Live traffic feed unavailable, serving stored incidents",
                bbox=bbox.to_query_param(),
                error=e.message,
                error_code=e.error_code,
            )
            return result

        transient = self._merge_live(raw_records, bbox, result.vendor, filters)
        if not transient:
            return result
        vendor = sorted(result.vendor + transient, key=lambda incident: incident.created_at, reverse=True)
        return QueryResult(vendor=vendor, user=result.user)

    async def _fetch_live(self, bbox: BoundingBox) -> list[Any]:
        # a timeout counts as a breaker failure
        try:
            return await asyncio.wait_for(self._feed_client.fetch_incidents(bbox), timeout=self._settings.vendor_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise VendorTimeoutError("Live traffic feed request timed out", "VENDOR_TIMEOUT") from e

    def list_reports(self, bbox: BoundingBox | None, filters: IncidentFilters | None = None) -> list[Incident]:
        """User reports matching ``filters``, newest first; the box is optional.

        ``active=None`` returns reports in every state.
        """
        filters = filters or IncidentFilters()
        return self._repository.search(
            IncidentCriteria(
                now=self._clock(),
                bbox=bbox,
                source=IncidentSource.USER,
                incident_type=filters.incident_type,
                reporter_id=filters.user_id,
                active=filters.active,
            )
        )

    def _merge_live(
        self, raw_records: list[Any], bbox: BoundingBox, stored: list[Incident], filters: IncidentFilters
    ) -> list[Incident]:
        now = self._clock()
        matcher = LinearGeoMatcher(stored)
        transient: list[Incident] = []
        for raw in raw_records:
            try:
                candidate = FeedCandidate.from_raw(raw, self._mapper)
                if not bbox.contains(candidate.location):
                    continue
                if filters.incident_type is not None and candidate.incident_type is not filters.incident_type:
                    continue
                if matcher.match(candidate.incident_type, candidate.location) is not None:
                    continue
                incident = candidate.to_incident(now, self._fallback_ttl, persistent=False)
            except InvalidIncidentError as e:
                logger.debug("Ignoring live feed record", error=e.message)
                continue
            if not incident.is_relevant(now) or any(
                other.incident_type is incident.incident_type and other.location == incident.location for other in transient
            ):
                continue
            transient.append(incident)
        logger.debug("Live feed merged", fetched=len(raw_records), appended=len(transient))
        return transient
