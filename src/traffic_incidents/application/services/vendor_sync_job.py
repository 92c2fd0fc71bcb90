"""Periodic reconciliation of the traffic feed into the incident store."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import structlog

from ...config import Settings
from ...core.clock import utc_now
from ...core.exceptions import (
    IncidentNotFoundError,
    InvalidIncidentError,
    StoreUnavailableError,
    UnsupportedGeometryError,
    VendorFeedError,
)
from ...domain.enums import IncidentSource
from ...domain.repositories import IncidentRepository
from ...domain.services import GeoMatcher, LinearGeoMatcher, RepositoryGeoMatcher, TaxonomyMapper
from ...domain.value_objects import BoundingBox
from ...infrastructure.vendor import TrafficFeedClient
from ..dtos import SyncReport
from .feed_records import FeedCandidate

logger = structlog.get_logger(__name__)


class VendorSyncJob:
    """
    Pulls the feed for the coverage area on a fixed interval and reconciles it.

    Ticks never overlap: a tick that comes due while the previous one still
    runs is skipped, not queued. The fetch is bounded by the feed timeout and
    is never retried within a tick. Each record is reconciled on its own, so a
    bad record or a failed write does not affect the others.
    """

    def __init__(
        self,
        repository: IncidentRepository,
        client: TrafficFeedClient,
        settings: Settings,
        mapper: TaxonomyMapper | None = None,
        matcher_factory: Callable[[], GeoMatcher] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the sync job.

        Args:
            repository: Incident store
            client: Traffic feed client
            settings: Interval, coverage area, timeout and fallback expiry
            mapper: Feed code translation
            matcher_factory: Builds the matcher used for one tick
            clock: Source of the current UTC time
        """
        self._repository = repository
        self._client = client
        self._settings = settings
        self._mapper = mapper or TaxonomyMapper()
        self._matcher_factory = matcher_factory or self._default_matcher_factory
        self._clock = clock

        self._coverage = BoundingBox.from_tuple(settings.coverage_bbox)
        self._fallback_ttl = timedelta(minutes=settings.vendor_default_ttl_minutes)
        self._lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self._tick_task: asyncio.Task | None = None
        self._last_report: SyncReport | None = None
        self._skipped_ticks = 0

    def _default_matcher_factory(self) -> GeoMatcher:
        if self._settings.sync_matcher == "store":
            return RepositoryGeoMatcher(self._repository)
        return LinearGeoMatcher()

    @property
    def is_running(self) -> bool:
        """Whether the periodic loop is scheduled."""
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def tick_in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def last_report(self) -> SyncReport | None:
        return self._last_report

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "tick_in_progress": self.tick_in_progress,
            "interval_seconds": self._settings.sync_interval_seconds,
            "skipped_ticks": self._skipped_ticks,
            "last_report": self._last_report.to_dict() if self._last_report else None,
        }

    def start(self) -> None:
        """Schedule the periodic loop on the running event loop."""
        if self.is_running:
            return
        self._loop_task = asyncio.create_task(self._run_forever(), name="vendor-sync-loop")
        logger.info(
            "Vendor sync job started",
            interval_seconds=self._settings.sync_interval_seconds,
            coverage_bbox=self._coverage.to_query_param(),
        )

    async def stop(self) -> None:
        """Cancel the loop and any tick in flight, and wait for both to finish."""
        tasks = [task for task in (self._loop_task, self._tick_task) if task is not None and not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._loop_task = None
        self._tick_task = None
        logger.info("Vendor sync job stopped")

    async def _run_forever(self) -> None:
        while True:
            if self._lock.locked():
                self._skipped_ticks += 1
                logger.warning("Previous sync tick still running, skipping this one", skipped_ticks=self._skipped_ticks)
            else:
                self._tick_task = asyncio.create_task(self.run_once(), name="vendor-sync-tick")
                self._tick_task.add_done_callback(self._log_tick_failure)
            await asyncio.sleep(self._settings.sync_interval_seconds)

    @staticmethod
    def _log_tick_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Sync tick failed", error=str(exc), error_type=type(exc).__name__, exc_info=exc)

    async def run_once(self) -> SyncReport:
        """
        Perform one tick.

        Returns:
            SyncReport: Counters for the tick; ``aborted`` names why a tick did
            not reconcile anything
        """
        if self._lock.locked():
            self._skipped_ticks += 1
            logger.warning("Sync tick requested while another is running, skipping")
            return SyncReport(aborted="already_running")

        async with self._lock:
            now = self._clock()
            report = SyncReport(started_at=now.isoformat())
            start_time = time.perf_counter()

            try:
                raw_records = await asyncio.wait_for(
                    self._client.fetch_incidents(self._coverage),
                    timeout=self._settings.vendor_timeout_seconds,
                )
            except asyncio.TimeoutError:
                report.aborted = "fetch_timeout"
                logger.warning("Traffic feed fetch timed out, tick abandoned", timeout=self._settings.vendor_timeout_seconds)
            except VendorFeedError as e:
                report.aborted = "fetch_failed"
                logger.warning("Traffic feed fetch failed, tick abandoned", error=e.message, error_code=e.error_code)
            else:
                report.fetched = len(raw_records)
                reconcile = asyncio.ensure_future(asyncio.to_thread(self._reconcile, raw_records, now, report))
                try:
                    await asyncio.shield(reconcile)
                except StoreUnavailableError as e:
                    report.aborted = "store_unavailable"
                    logger.error("Incident store unavailable, tick abandoned", error=e.message)
                except asyncio.CancelledError:
                    # the worker thread cannot be interrupted; keep the lock until its writes are done
                    await asyncio.wait({reconcile})
                    if not reconcile.cancelled() and reconcile.exception() is not None:
                        logger.error("Reconcile failed while the tick was being cancelled", error=str(reconcile.exception()))
                    logger.info("Sync tick cancelled", **report.to_dict())
                    raise

            report.duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            self._last_report = report
            logger.info("Sync tick finished", **report.to_dict())
            return report

    def _reconcile(self, raw_records: list[Any], now: datetime, report: SyncReport) -> None:
        matcher = self._matcher_factory()
        matcher.load(self._repository.find_active_in_box(self._coverage, IncidentSource.VENDOR))

        for index, raw in enumerate(raw_records):
            try:
                candidate = FeedCandidate.from_raw(raw, self._mapper)
            except UnsupportedGeometryError as e:
                report.skipped += 1
                logger.warning("Skipping feed record with unsupported geometry", index=index, geometry_type=e.geometry_type)
                continue
            except InvalidIncidentError as e:
                report.skipped += 1
                logger.warning("Skipping malformed feed record", index=index, error=e.message)
                continue

            if not self._coverage.contains(candidate.location):
                report.ignored += 1
                continue

            try:
                match_id = matcher.match(candidate.incident_type, candidate.location)
                if match_id is not None:
                    self._repository.refresh_vendor(match_id, candidate.active, now)
                    report.refreshed += 1
                elif not candidate.active:
                    # inactive and unknown: nothing to store
                    report.ignored += 1
                else:
                    incident = candidate.to_incident(now, self._fallback_ttl)
                    self._repository.add(incident)
                    matcher.add(incident)
                    report.created += 1
            except InvalidIncidentError as e:
                report.skipped += 1
                logger.warning("Skipping malformed feed record", index=index, error=e.message)
            except (StoreUnavailableError, IncidentNotFoundError) as e:
                report.failed += 1
                logger.error("Failed to reconcile feed record", index=index, error=e.message)
