"""Tests for the HTTP surface: wire shape, identity header and error mapping."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sirrs.database import get_db
from sirrs.main import app


@pytest.fixture
def client(db_engine):
    TestingSessionLocal = sessionmaker(bind=db_engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(user):
    return {"X-User-Id": str(user.id)}


def _report(client, user, **overrides):
    body = {
        "title": "Pothole",
        "description": "Large pothole on Main Street causing traffic",
        "lat": 12.97,
        "lng": 77.59,
        "address": "Main Street",
        "photos": ["/uploads/p1.jpg"],
    }
    body.update(overrides)
    return client.post("/api/incidents", json=body, headers=_as(user))


class TestCreate:

    def test_create_returns_wire_shape_and_suggestion(self, client, citizen):
        response = _report(client, citizen)
        assert response.status_code == 201

        data = response.json()
        assert data["success"] is True
        assert data["aiSuggestion"] == "road"

        incident = data["incident"]
        assert set(incident) == {
            "id", "title", "description", "category", "photos", "latitude", "longitude",
            "address", "status", "reporterId", "deadline", "timeline", "resolutionPhotos",
            "createdAt", "updatedAt", "reporter",
        }
        assert incident["category"] == "road"
        assert incident["status"] == "pending"
        assert incident["reporterId"] == citizen.id
        assert incident["photos"] == ["/uploads/p1.jpg"]
        assert incident["resolutionPhotos"] == []
        assert incident["reporter"] == {"name": "Asha Rao", "email": "asha@example.com"}
        assert incident["timeline"][0]["status"] == "pending"
        assert incident["timeline"][0]["note"] == "Incident reported"
        assert incident["timeline"][0]["updatedBy"] == citizen.id

    def test_explicit_category_has_no_suggestion(self, client, citizen):
        data = _report(client, citizen, category="waste").json()
        assert data["incident"]["category"] == "waste"
        assert data["aiSuggestion"] is None

    def test_missing_coordinates(self, client, citizen):
        response = _report(client, citizen, lat=None)
        assert response.status_code == 400
        assert response.json()["detail"] == "Location coordinates are required"

    def test_too_many_photos(self, client, citizen):
        response = _report(client, citizen, photos=[f"/uploads/{i}.jpg" for i in range(6)])
        assert response.status_code == 400

    def test_missing_identity(self, client):
        response = client.post("/api/incidents", json={"title": "x"})
        assert response.status_code == 401

    def test_unknown_user(self, client):
        response = client.post("/api/incidents", json={"title": "x"}, headers={"X-User-Id": "9999"})
        assert response.status_code == 401


class TestStatusUpdates:

    def test_authority_resolves(self, client, citizen, authority):
        incident_id = _report(client, citizen).json()["incident"]["id"]

        response = client.patch(
            f"/api/incidents/{incident_id}/status", json={"status": "resolved"}, headers=_as(authority)
        )
        assert response.status_code == 200
        incident = response.json()["incident"]
        assert incident["status"] == "resolved"
        assert incident["timeline"][-1]["status"] == "resolved"
        assert incident["timeline"][-1]["note"] == "Status changed to resolved"
        assert len(incident["timeline"]) == 2

    def test_in_progress_round_trips_with_hyphen(self, client, citizen, admin):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.patch(
            f"/api/incidents/{incident_id}/status",
            json={"status": "in-progress", "note": "Crew on site"},
            headers=_as(admin)
        )
        assert response.json()["incident"]["status"] == "in-progress"

    def test_citizen_forbidden(self, client, citizen):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.patch(
            f"/api/incidents/{incident_id}/status", json={"status": "resolved"}, headers=_as(citizen)
        )
        assert response.status_code == 403

    def test_unknown_incident(self, client, authority):
        response = client.patch("/api/incidents/9999/status", json={"status": "resolved"}, headers=_as(authority))
        assert response.status_code == 404

    def test_invalid_status(self, client, citizen, authority):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.patch(
            f"/api/incidents/{incident_id}/status", json={"status": "closed"}, headers=_as(authority)
        )
        assert response.status_code == 400

    def test_overlong_note_is_a_400(self, client, citizen, authority):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.patch(
            f"/api/incidents/{incident_id}/status",
            json={"status": "resolved", "note": "x" * 600},
            headers=_as(authority)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Note must be at most 500 characters"

    def test_missing_status_is_a_400(self, client, citizen, authority):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.patch(
            f"/api/incidents/{incident_id}/status", json={"note": "No status"}, headers=_as(authority)
        )
        assert response.status_code == 400
        assert isinstance(response.json()["detail"], str)


class TestResolutionPhotos:

    def test_authority_uploads(self, client, citizen, authority):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.post(
            f"/api/incidents/{incident_id}/photos",
            json={"photos": ["/uploads/after.jpg"]},
            headers=_as(authority)
        )
        assert response.status_code == 200
        data = response.json()
        assert data["photos"] == ["/uploads/after.jpg"]
        assert data["incident"]["resolutionPhotos"] == ["/uploads/after.jpg"]
        assert len(data["incident"]["timeline"]) == 1

    def test_citizen_forbidden(self, client, citizen):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.post(
            f"/api/incidents/{incident_id}/photos", json={"photos": ["/uploads/x.jpg"]}, headers=_as(citizen)
        )
        assert response.status_code == 403


class TestReads:

    def test_owner_and_staff_can_read(self, client, citizen, authority):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        assert client.get(f"/api/incidents/{incident_id}", headers=_as(citizen)).status_code == 200
        assert client.get(f"/api/incidents/{incident_id}", headers=_as(authority)).status_code == 200

    def test_other_citizen_forbidden(self, client, citizen, other_citizen):
        incident_id = _report(client, citizen).json()["incident"]["id"]
        response = client.get(f"/api/incidents/{incident_id}", headers=_as(other_citizen))
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to view this incident"

    def test_missing_incident(self, client, authority):
        assert client.get("/api/incidents/9999", headers=_as(authority)).status_code == 404

    def test_single_read_includes_reporter_phone(self, client, citizen, authority, db_session):
        citizen.phone = "+91 80 1234 5678"
        db_session.commit()
        incident_id = _report(client, citizen).json()["incident"]["id"]

        incident = client.get(f"/api/incidents/{incident_id}", headers=_as(authority)).json()["incident"]
        assert incident["reporter"] == {
            "name": "Asha Rao", "email": "asha@example.com", "phone": "+91 80 1234 5678"
        }

        listed = client.get("/api/incidents", headers=_as(authority)).json()["incidents"]
        assert listed[0]["reporter"] == {"name": "Asha Rao", "email": "asha@example.com"}

    def test_list_pagination(self, client, citizen, authority):
        for i in range(45):
            _report(client, citizen, title=f"Report {i}")

        response = client.get("/api/incidents", params={"page": 2, "limit": 20}, headers=_as(authority))
        data = response.json()
        assert len(data["incidents"]) == 20
        assert data["pagination"] == {"page": 2, "limit": 20, "total": 45, "pages": 3}

    def test_list_scoped_for_citizens(self, client, citizen, other_citizen):
        _report(client, citizen)
        _report(client, other_citizen)

        data = client.get("/api/incidents", headers=_as(other_citizen)).json()
        assert data["pagination"]["total"] == 1
        assert data["incidents"][0]["reporterId"] == other_citizen.id

    def test_list_filters(self, client, citizen, authority):
        _report(client, citizen, category="water")
        _report(client, citizen, category="road")

        data = client.get("/api/incidents", params={"category": "water"}, headers=_as(authority)).json()
        assert [i["category"] for i in data["incidents"]] == ["water"]

    def test_invalid_filter(self, client, authority):
        response = client.get("/api/incidents", params={"status": "closed"}, headers=_as(authority))
        assert response.status_code == 400

    def test_page_zero_is_clamped(self, client, citizen):
        _report(client, citizen)
        data = client.get("/api/incidents", params={"page": 0}, headers=_as(citizen)).json()
        assert data["pagination"]["page"] == 1
        assert len(data["incidents"]) == 1

    def test_huge_page_is_empty(self, client, citizen):
        _report(client, citizen)
        response = client.get("/api/incidents", params={"page": "99999999999999999999"}, headers=_as(citizen))
        assert response.status_code == 200
        data = response.json()
        assert data["incidents"] == []
        assert data["pagination"]["total"] == 1


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "service": "SIRRS"}
