"""Wiring of the store, feed client and services for one application instance."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from sqlalchemy.engine import Engine

from .application.services import QueryService, UserReportService, VendorSyncJob
from .config import Settings
from .domain.repositories import IncidentRepository
from .infrastructure.persistence import SQLAlchemyIncidentRepository, build_engine, build_session_factory, create_tables
from .infrastructure.vendor import TrafficFeedClient


@dataclass
class ServiceContainer:
    settings: Settings
    engine: Engine
    repository: IncidentRepository
    feed_client: TrafficFeedClient
    report_service: UserReportService
    query_service: QueryService
    sync_job: VendorSyncJob

    def create_tables(self) -> None:
        create_tables(self.engine)

    async def aclose(self) -> None:
        await self.sync_job.stop()
        await self.feed_client.aclose()
        self.engine.dispose()


def build_container(settings: Settings, feed_transport: httpx.AsyncBaseTransport | None = None) -> ServiceContainer:
    """Create every long-lived component from ``settings``.

    Args:
        settings: Application settings
        feed_transport: Optional httpx transport for the feed client, used by tests
    """
    engine = build_engine(settings)
    repository = SQLAlchemyIncidentRepository(build_session_factory(engine))
    feed_client = TrafficFeedClient(settings, transport=feed_transport)
    return ServiceContainer(
        settings=settings,
        engine=engine,
        repository=repository,
        feed_client=feed_client,
        report_service=UserReportService(repository, settings),
        query_service=QueryService(repository, settings, feed_client=feed_client),
        sync_job=VendorSyncJob(repository, feed_client, settings),
    )
