"""
Integration tests for the user report endpoints.

Runs the full FastAPI stack against an in-memory store.
"""

from datetime import timedelta

import pytest
from conftest import PARIS, PARIS_BBOX

from traffic_incidents.domain.entities import Incident
from traffic_incidents.domain.enums import IncidentType, Severity
from traffic_incidents.domain.value_objects import GeoPoint

PREFIX = "/api/traffic"


def submit(client, incident_type="accident", coordinates=None, user_id="driver-1", **extra):
    body = {"incidentType": incident_type, "coordinates": coordinates or list(PARIS), **extra}
    headers = {"X-User-Id": user_id} if user_id else {}
    return client.post(f"{PREFIX}/report", json=body, headers=headers)


@pytest.mark.integration
class TestSubmitReport:
    """POST /report."""

    def test_created(self, client):
        response = submit(client, durationMinutes=30, severity="high", description="Pile-up on the ring road")

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "Report created successfully"
        data = body["data"]
        assert data["id"]
        assert data["source"] == "user"
        assert data["incidentType"] == "accident"
        assert data["coordinates"] == PARIS
        assert data["severity"] == "high"
        assert data["active"] is True
        assert data["reporterId"] == "driver-1"
        assert data["validations"] == 0
        assert data["invalidations"] == 0
        assert data["description"] == "Pile-up on the ring road"
        assert "expiresAt" in data and "createdAt" in data

    def test_reporter_defaults_to_anonymous(self, client):
        response = submit(client, user_id=None)

        assert response.json()["data"]["reporterId"] == "anonymous"

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"coordinates": PARIS}, "incidentType"),
            ({"incidentType": "meteor", "coordinates": PARIS}, "incidentType"),
            ({"incidentType": "accident"}, "coordinates"),
            ({"incidentType": "accident", "coordinates": [2.35]}, "coordinates"),
            ({"incidentType": "accident", "coordinates": PARIS, "durationMinutes": 0}, "durationMinutes"),
            ({"incidentType": "accident", "coordinates": PARIS, "severity": "extreme"}, "severity"),
        ],
    )
    def test_invalid_body_names_the_field(self, client, body, field):
        response = client.post(f"{PREFIX}/report", json=body)

        assert response.status_code == 400
        error = response.json()["errors"][0]
        assert error["field"] == field
        assert error["error_code"] == "VALIDATION_ERROR"

    def test_non_json_body(self, client):
        response = client.post(f"{PREFIX}/report", content=b"not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_nothing_is_stored_on_rejection(self, client):
        client.post(f"{PREFIX}/report", json={"incidentType": "accident", "coordinates": PARIS, "durationMinutes": -1})

        assert client.get(f"{PREFIX}/reports").json()["results"] == 0


@pytest.mark.integration
class TestVoting:
    """POST /validate/{id}, POST /invalidate/{id} and PATCH /resolve/{id}."""

    def test_validate(self, client):
        incident_id = submit(client).json()["data"]["id"]

        response = client.post(f"{PREFIX}/validate/{incident_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Report validated"
        assert response.json()["data"]["validations"] == 1
        assert response.json()["data"]["active"] is True

    def test_community_invalidation_scenario(self, client):
        incident_id = submit(client, user_id="alice").json()["data"]["id"]

        first = client.post(f"{PREFIX}/invalidate/{incident_id}").json()
        second = client.post(f"{PREFIX}/invalidate/{incident_id}").json()
        third = client.post(f"{PREFIX}/invalidate/{incident_id}").json()

        assert first["data"]["active"] is True
        assert second["data"]["invalidations"] == 2
        assert second["data"]["active"] is True
        assert third["data"]["invalidations"] == 3
        assert third["data"]["active"] is False
        assert third["message"] == "Report invalidated and deactivated"

        active = client.get(f"{PREFIX}/reports", params={"active": "true"}).json()
        inactive = client.get(f"{PREFIX}/reports", params={"active": "false"}).json()
        incidents = client.get(f"{PREFIX}/incidents", params={"bbox": PARIS_BBOX}).json()
        assert active["data"] == []
        assert [report["id"] for report in inactive["data"]] == [incident_id]
        assert incidents["data"]["user"] == []

        revalidated = client.post(f"{PREFIX}/validate/{incident_id}").json()
        assert revalidated["data"]["active"] is False

    def test_resolve(self, client):
        incident_id = submit(client).json()["data"]["id"]

        response = client.patch(f"{PREFIX}/resolve/{incident_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Incident resolved"
        assert response.json()["data"]["active"] is False

    @pytest.mark.parametrize(
        "method,path",
        [("post", "validate"), ("post", "invalidate"), ("patch", "resolve")],
    )
    def test_unknown_id_is_404(self, client, method, path):
        response = getattr(client, method)(f"{PREFIX}/{path}/no-such-report")

        assert response.status_code == 404
        error = response.json()["errors"][0]
        assert error["error_code"] == "INCIDENT_NOT_FOUND"
        assert error["field"] == "id"

    def test_vote_on_vendor_record_is_409(self, client, container, clock):
        vendor = container.repository.add(
            Incident.new_vendor_record(
                IncidentType.ROADWORKS, GeoPoint(*PARIS), Severity.LOW, now=clock(), expires_at=clock() + timedelta(days=3650)
            )
        )

        response = client.post(f"{PREFIX}/invalidate/{vendor.id}")

        assert response.status_code == 409
        assert response.json()["errors"][0]["error_code"] == "INCIDENT_NOT_VOTABLE"


@pytest.mark.integration
class TestListReports:
    """GET /reports."""

    def test_filters(self, client):
        mine = submit(client, incident_type="police", user_id="alice").json()["data"]["id"]
        submit(client, incident_type="police", user_id="bob")
        submit(client, incident_type="accident", user_id="alice")

        response = client.get(f"{PREFIX}/reports", params={"userId": "alice", "incidentType": "police"})

        assert response.status_code == 200
        body = response.json()
        assert body["results"] == 1
        assert [report["id"] for report in body["data"]] == [mine]

    def test_bbox_is_optional_but_validated(self, client):
        submit(client)
        submit(client, coordinates=[1.0993, 49.4431])

        assert client.get(f"{PREFIX}/reports").json()["results"] == 2
        assert client.get(f"{PREFIX}/reports", params={"bbox": PARIS_BBOX}).json()["results"] == 1
        assert client.get(f"{PREFIX}/reports", params={"bbox": "1,2,3"}).status_code == 400

