"""SQLAlchemy implementation of the incident repository."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

import structlog
from sqlalchemy import and_, case, false, not_, select, text, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ...core.exceptions import IncidentNotFoundError, IncidentNotVotableError, StoreUnavailableError
from ...domain.entities import Incident
from ...domain.enums import IncidentSource, IncidentType, VoteKind
from ...domain.repositories import IncidentCriteria, IncidentRepository
from ...domain.value_objects import BoundingBox, GeoPoint
from .models import IncidentRecord

logger = structlog.get_logger(__name__)


class SQLAlchemyIncidentRepository(IncidentRepository):
    """Incident store backed by a relational database.

    Each call runs in its own short transaction. Vote and refresh updates are
    single ``UPDATE`` statements, so the counter increment and the derived
    ``active`` flip are committed together.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Incident store operation failed", operation=operation, error=str(e))
            raise StoreUnavailableError(f"Incident store unavailable during {operation}", "STORE_UNAVAILABLE") from e

    def add(self, incident: Incident) -> Incident:
        with self._transaction("add") as session:
            session.add(IncidentRecord.from_entity(incident))
        return incident

    def get(self, incident_id: str) -> Incident | None:
        with self._transaction("get") as session:
            record = session.get(IncidentRecord, incident_id)
            return record.to_entity() if record else None

    def find_active_in_box(self, bbox: BoundingBox, source: IncidentSource) -> list[Incident]:
        stmt = select(IncidentRecord).where(
            IncidentRecord.source == source.value,
            IncidentRecord.active == true(),
            _in_box(bbox),
        )
        with self._transaction("find_active_in_box") as session:
            return [record.to_entity() for record in session.scalars(stmt)]

    def find_by_type_and_point(self, incident_type: IncidentType, point: GeoPoint) -> list[Incident]:
        stmt = (
            select(IncidentRecord)
            .where(
                IncidentRecord.incident_type == incident_type.value,
                IncidentRecord.active == true(),
                IncidentRecord.source == IncidentSource.VENDOR.value,
                IncidentRecord.lon == point.lon,
                IncidentRecord.lat == point.lat,
            )
            .order_by(IncidentRecord.updated_at.desc())
        )
        with self._transaction("find_by_type_and_point") as session:
            return [record.to_entity() for record in session.scalars(stmt)]

    def search(self, criteria: IncidentCriteria) -> list[Incident]:
        conditions = []
        if criteria.bbox is not None:
            conditions.append(_in_box(criteria.bbox))
        if criteria.source is not None:
            conditions.append(IncidentRecord.source == criteria.source.value)
        if criteria.incident_type is not None:
            conditions.append(IncidentRecord.incident_type == criteria.incident_type.value)
        if criteria.reporter_id is not None:
            conditions.append(IncidentRecord.reporter_id == criteria.reporter_id)

        relevant = and_(IncidentRecord.active == true(), IncidentRecord.expires_at > criteria.now)
        if criteria.active is True:
            conditions.append(relevant)
        elif criteria.active is False:
            conditions.append(not_(relevant))

        stmt = select(IncidentRecord).where(*conditions).order_by(IncidentRecord.created_at.desc())
        with self._transaction("search") as session:
            return [record.to_entity() for record in session.scalars(stmt)]

    def increment_vote(self, incident_id: str, kind: VoteKind, threshold: int, now: datetime) -> Incident:
        if kind is VoteKind.VALIDATE:
            values = {"validations": IncidentRecord.validations + 1}
        else:
            # SET expressions see the pre-update row, hence the + 1
            values = {
                "invalidations": IncidentRecord.invalidations + 1,
                "active": case(
                    (IncidentRecord.invalidations + 1 >= threshold, false()),
                    else_=IncidentRecord.active,
                ),
            }
        values["updated_at"] = now

        stmt = (
            update(IncidentRecord)
            .where(IncidentRecord.id == incident_id, IncidentRecord.source == IncidentSource.USER.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self._transaction("increment_vote") as session:
            result = session.execute(stmt)
            if result.rowcount == 0:
                self._raise_missing_or_vendor(session, incident_id)
            return self._reload(session, incident_id)

    def refresh_vendor(self, incident_id: str, feed_active: bool, now: datetime) -> Incident:
        active = case((IncidentRecord.expires_at > now, true()), else_=false()) if feed_active else false()
        stmt = (
            update(IncidentRecord)
            .where(IncidentRecord.id == incident_id)
            .values(active=active, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        with self._transaction("refresh_vendor") as session:
            if session.execute(stmt).rowcount == 0:
                raise IncidentNotFoundError(incident_id)
            return self._reload(session, incident_id)

    def set_active(self, incident_id: str, active: bool, now: datetime) -> Incident:
        stmt = (
            update(IncidentRecord)
            .where(IncidentRecord.id == incident_id)
            .values(active=active, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        with self._transaction("set_active") as session:
            if session.execute(stmt).rowcount == 0:
                raise IncidentNotFoundError(incident_id)
            return self._reload(session, incident_id)

    def ping(self) -> None:
        with self._transaction("ping") as session:
            session.execute(text("SELECT 1"))

    @staticmethod
    def _reload(session: Session, incident_id: str) -> Incident:
        record = session.scalars(
            select(IncidentRecord).where(IncidentRecord.id == incident_id).execution_options(populate_existing=True)
        ).one()
        return record.to_entity()

    @staticmethod
    def _raise_missing_or_vendor(session: Session, incident_id: str) -> None:
        source = session.scalar(select(IncidentRecord.source).where(IncidentRecord.id == incident_id))
        if source is None:
            raise IncidentNotFoundError(incident_id)
        raise IncidentNotVotableError(incident_id)


def _in_box(bbox: BoundingBox):
    return and_(
        IncidentRecord.lon >= bbox.min_lon,
        IncidentRecord.lon <= bbox.max_lon,
        IncidentRecord.lat >= bbox.min_lat,
        IncidentRecord.lat <= bbox.max_lat,
    )
