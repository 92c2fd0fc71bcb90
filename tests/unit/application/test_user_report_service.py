"""Unit tests for user report submission and trust voting."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from conftest import PARIS, make_settings
from freezegun import freeze_time

from traffic_incidents.application.dtos import SubmitReportRequest
from traffic_incidents.application.services import ANONYMOUS_REPORTER, UserReportService
from traffic_incidents.core.exceptions import IncidentNotFoundError, IncidentNotVotableError, ValidationError
from traffic_incidents.domain.entities import Incident
from traffic_incidents.domain.enums import IncidentSource, IncidentType, Severity
from traffic_incidents.domain.value_objects import GeoPoint
from traffic_incidents.infrastructure.persistence import (
    SQLAlchemyIncidentRepository,
    build_engine,
    build_session_factory,
    create_tables,
)


def request(**fields):
    body = {"incidentType": "accident", "coordinates": list(PARIS)}
    body.update(fields)
    return SubmitReportRequest.model_validate(body)


class TestSubmit:
    """Report creation and input validation."""

    def test_submit_defaults(self, report_service, repository, clock):
        incident = report_service.submit(request(), reporter_id="u1")

        assert incident.source is IncidentSource.USER
        assert incident.incident_type is IncidentType.ACCIDENT
        assert incident.location == GeoPoint(*PARIS)
        assert incident.severity is Severity.MODERATE
        assert incident.description == "Accident"
        assert incident.active is True
        assert (incident.validations, incident.invalidations) == (0, 0)
        assert incident.expires_at == clock() + timedelta(minutes=60)
        assert repository.get(incident.id) == incident

    @freeze_time("2026-10-19 08:15:00")
    def test_expiry_follows_duration(self, repository, settings):
        service = UserReportService(repository, settings)

        incident = service.submit(request(durationMinutes=30, severity="high", description="  Two cars  "))

        assert incident.created_at == datetime(2026, 10, 19, 8, 15, tzinfo=timezone.utc)
        assert incident.expires_at == datetime(2026, 10, 19, 8, 45, tzinfo=timezone.utc)
        assert incident.severity is Severity.HIGH
        assert incident.description == "Two cars"

    def test_default_duration_comes_from_settings(self, repository, clock):
        service = UserReportService(repository, make_settings(report_default_duration_minutes=15), clock=clock)

        incident = service.submit(request())

        assert incident.expires_at == clock() + timedelta(minutes=15)

    def test_whole_float_duration_is_accepted(self, report_service, clock):
        incident = report_service.submit(request(durationMinutes=45.0))

        assert incident.expires_at == clock() + timedelta(minutes=45)

    def test_missing_reporter_is_anonymous(self, report_service):
        assert report_service.submit(request()).reporter_id == ANONYMOUS_REPORTER

    @pytest.mark.parametrize(
        "fields,field",
        [
            ({"incidentType": None}, "incidentType"),
            ({"incidentType": "  "}, "incidentType"),
            ({"incidentType": "meteor"}, "incidentType"),
            ({"coordinates": None}, "coordinates"),
            ({"coordinates": "2.35,48.85"}, "coordinates"),
            ({"coordinates": [2.35]}, "coordinates"),
            ({"coordinates": [2.35, 48.85, 10]}, "coordinates"),
            ({"coordinates": [True, 48.85]}, "coordinates"),
            ({"coordinates": [2.35, 95]}, "coordinates"),
            ({"coordinates": ["a", "b"]}, "coordinates"),
            ({"severity": "apocalyptic"}, "severity"),
            ({"durationMinutes": 0}, "durationMinutes"),
            ({"durationMinutes": -5}, "durationMinutes"),
            ({"durationMinutes": 1.5}, "durationMinutes"),
            ({"durationMinutes": "30"}, "durationMinutes"),
            ({"durationMinutes": True}, "durationMinutes"),
        ],
    )
    def test_invalid_fields_are_named(self, report_service, fields, field):
        with pytest.raises(ValidationError) as exc_info:
            report_service.submit(request(**fields))

        assert exc_info.value.field == field
        assert exc_info.value.error_code == "VALIDATION_ERROR"

    def test_nothing_is_written_on_validation_error(self, report_service, query_service):
        with pytest.raises(ValidationError):
            report_service.submit(request(durationMinutes=0))

        assert query_service.list_reports(None) == []


class TestVoting:
    """Validation and invalidation votes."""

    def test_two_invalidations_keep_report_active(self, report_service):
        incident = report_service.submit(request())

        report_service.invalidate(incident.id)
        updated = report_service.invalidate(incident.id)

        assert updated.invalidations == 2
        assert updated.active is True

    def test_third_invalidation_deactivates(self, report_service):
        incident = report_service.submit(request())

        for _ in range(3):
            updated = report_service.invalidate(incident.id)

        assert updated.invalidations == 3
        assert updated.active is False

    def test_validation_does_not_reactivate(self, report_service):
        incident = report_service.submit(request())
        for _ in range(3):
            report_service.invalidate(incident.id)

        for _ in range(5):
            updated = report_service.validate(incident.id)

        assert updated.validations == 5
        assert updated.active is False

    def test_threshold_is_configurable(self, repository, clock):
        service = UserReportService(repository, make_settings(report_invalidation_threshold=1), clock=clock)
        incident = service.submit(request())

        assert service.invalidate(incident.id).active is False

    def test_unknown_id(self, report_service):
        with pytest.raises(IncidentNotFoundError):
            report_service.validate("does-not-exist")
        with pytest.raises(IncidentNotFoundError):
            report_service.invalidate("does-not-exist")

    def test_vendor_records_reject_votes(self, report_service, repository, clock):
        vendor = repository.add(
            Incident.new_vendor_record(
                IncidentType.HAZARD, GeoPoint(*PARIS), Severity.LOW, now=clock(), expires_at=clock() + timedelta(hours=1)
            )
        )

        with pytest.raises(IncidentNotVotableError):
            report_service.invalidate(vendor.id)


class TestResolve:
    def test_resolve_user_report(self, report_service, clock):
        incident = report_service.submit(request())
        clock.advance(minutes=3)

        resolved = report_service.resolve(incident.id)

        assert resolved.active is False
        assert resolved.updated_at == clock()
        assert resolved.invalidations == 0

    def test_resolve_vendor_record(self, report_service, repository, clock):
        vendor = repository.add(
            Incident.new_vendor_record(
                IncidentType.ROADWORKS, GeoPoint(*PARIS), Severity.LOW, now=clock(), expires_at=clock() + timedelta(hours=1)
            )
        )

        assert report_service.resolve(vendor.id).active is False

    def test_resolve_unknown(self, report_service):
        with pytest.raises(IncidentNotFoundError):
            report_service.resolve("does-not-exist")


class TestConcurrentVotes:
    """Simultaneous invalidations against a file-backed store."""

    @pytest.fixture
    def file_store(self, tmp_path, clock):
        settings = make_settings(database_url=f"sqlite:///{tmp_path / 'votes.db'}")
        engine = build_engine(settings)
        create_tables(engine)
        repository = SQLAlchemyIncidentRepository(build_session_factory(engine))
        yield UserReportService(repository, settings, clock=clock), repository
        engine.dispose()

    @pytest.mark.parametrize("workers", [2, 3, 8])
    def test_no_lost_votes_and_a_single_deactivation(self, file_store, workers):
        service, repository = file_store
        incident = service.submit(request())
        barrier = threading.Barrier(workers)

        def invalidate(_):
            barrier.wait()
            return service.invalidate(incident.id)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(invalidate, range(workers)))

        assert sorted(result.invalidations for result in results) == list(range(1, workers + 1))
        assert sorted(result.invalidations for result in results if not result.active) == list(range(3, workers + 1))
        stored = repository.get(incident.id)
        assert stored.invalidations == workers
        assert stored.active is (workers < 3)
