"""Unit tests for the Incident entity."""

from dataclasses import replace
from datetime import timedelta

import pytest
from conftest import BASE_TIME

from traffic_incidents.core.exceptions import InvalidIncidentError
from traffic_incidents.domain.entities import Incident
from traffic_incidents.domain.enums import IncidentSource, IncidentType, Severity
from traffic_incidents.domain.value_objects import GeoPoint

POINT = GeoPoint(2.35, 48.85)


class TestUserReport:
    def test_new_user_report_defaults(self):
        report = Incident.new_user_report(
            IncidentType.ACCIDENT, POINT, reporter_id="u1", now=BASE_TIME, duration=timedelta(minutes=30)
        )

        assert report.id is not None
        assert report.source is IncidentSource.USER
        assert report.active is True
        assert report.validations == 0
        assert report.invalidations == 0
        assert report.severity is Severity.MODERATE
        assert report.description == "Accident"
        assert report.expires_at == BASE_TIME + timedelta(minutes=30)
        assert report.created_at == report.updated_at == BASE_TIME

    def test_non_positive_duration_is_rejected(self):
        with pytest.raises(InvalidIncidentError):
            Incident.new_user_report(IncidentType.ACCIDENT, POINT, reporter_id="u1", now=BASE_TIME, duration=timedelta(0))

    def test_to_dict_uses_api_field_names(self):
        report = Incident.new_user_report(
            IncidentType.ROAD_CLOSED, POINT, reporter_id="u1", now=BASE_TIME, duration=timedelta(hours=1)
        )

        data = report.to_dict()

        assert data["incidentType"] == "roadClosed"
        assert data["coordinates"] == [2.35, 48.85]
        assert data["reporterId"] == "u1"
        assert data["expiresAt"] == (BASE_TIME + timedelta(hours=1)).isoformat()


class TestVendorRecord:
    def test_vendor_record_has_no_votes(self):
        record = Incident.new_vendor_record(
            IncidentType.FLOOD, POINT, Severity.HIGH, now=BASE_TIME, expires_at=BASE_TIME + timedelta(hours=2)
        )

        assert record.source is IncidentSource.VENDOR
        assert record.validations is None
        assert record.invalidations is None
        assert record.reporter_id is None
        assert record.description == "Flooding"

    def test_transient_record_has_no_id(self):
        record = Incident.new_vendor_record(
            IncidentType.HAZARD,
            POINT,
            Severity.LOW,
            now=BASE_TIME,
            expires_at=BASE_TIME + timedelta(hours=1),
            persistent=False,
        )

        assert record.id is None

    def test_expiry_must_follow_creation(self):
        with pytest.raises(InvalidIncidentError):
            Incident.new_vendor_record(IncidentType.HAZARD, POINT, Severity.LOW, now=BASE_TIME, expires_at=BASE_TIME)


class TestRelevance:
    def test_relevant_until_expiry(self):
        report = Incident.new_user_report(
            IncidentType.POLICE, POINT, reporter_id="u1", now=BASE_TIME, duration=timedelta(minutes=10)
        )

        assert report.is_relevant(BASE_TIME + timedelta(minutes=9))
        assert not report.is_relevant(BASE_TIME + timedelta(minutes=10))

    def test_inactive_is_never_relevant(self):
        report = replace(
            Incident.new_user_report(IncidentType.POLICE, POINT, reporter_id="u1", now=BASE_TIME, duration=timedelta(minutes=10)),
            active=False,
        )

        assert not report.is_relevant(BASE_TIME)
