"""HTTP-level tests: routing, schemas and domain error mapping."""

import pytest
from fastapi.testclient import TestClient
from stallhub.database import get_db
from stallhub.main import app


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_event(client, stall_count=10):
    resp = client.post("/api/v1/events", json={
        "event_name": "Nashik Realty Expo",
        "city": "Nashik",
        "start_date": "2026-12-01",
        "end_date": "2026-12-03",
        "stall_count": stall_count,
    })
    assert resp.status_code == 201
    return resp.json()


class TestStallApi:
    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["database"] == "ok"

    def test_stall_type_capacity_flow(self, client):
        event = create_event(client)
        resp = client.post(f"/api/v1/events/{event['id']}/stall-types",
                           json={"name": "Premium", "unit_price": "5000", "quantity": 6})
        assert resp.status_code == 201
        assert resp.json()["remaining_capacity"] == 4

        resp = client.post(f"/api/v1/events/{event['id']}/stall-types",
                           json={"name": "Standard", "unit_price": "2000", "quantity": 5})
        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "CAPACITY_EXCEEDED"
        assert body["by"] == 1

        preview = client.get(f"/api/v1/events/{event['id']}/capacity/check", params={"quantity": 5})
        assert preview.json()["can_allocate"] is False

    def test_validation_error_shape(self, client):
        event = create_event(client)
        resp = client.post(f"/api/v1/events/{event['id']}/stall-types",
                           json={"name": " ", "unit_price": "10", "quantity": 1})
        assert resp.status_code == 422
        assert resp.json()["field"] == "name"

    def test_clearing_event_date_is_a_validation_error(self, client):
        event = create_event(client)
        resp = client.put(f"/api/v1/events/{event['id']}", json={"start_date": None})
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION_ERROR"
        assert resp.json()["field"] == "start_date"
        assert client.get(f"/api/v1/events/{event['id']}").json()["start_date"] == "2026-12-01"

    def test_book_and_checkin(self, client):
        event = create_event(client)
        stall_type = client.post(f"/api/v1/events/{event['id']}/stall-types",
                                 json={"name": "Standard", "unit_price": "2000", "quantity": 2}).json()
        type_id = stall_type["stall_type"]["id"]

        available = client.get(f"/api/v1/events/{event['id']}/stalls/available",
                               params={"stall_type_id": type_id}).json()
        assert [s["stall_number"] for s in available] == [1, 2]

        booking = client.post(f"/api/v1/stalls/{available[0]['id']}/book", json={"builder_id": 4})
        assert booking.status_code == 201
        again = client.post(f"/api/v1/stalls/{available[0]['id']}/book", json={"builder_id": 5})
        assert again.status_code == 409
        assert again.json()["error"] == "ALREADY_BOOKED"

        checkin = client.get(f"/api/v1/events/{event['id']}/stalls/{available[0]['id']}/checkin").json()
        assert f"/buyer-dashboard/stall-checkin/{event['id']}/{available[0]['id']}?ref=" in checkin["url"]

        resolved = client.get("/api/v1/checkin/resolve", params={"ref": checkin["url"]}).json()
        assert resolved["stall_id"] == available[0]["id"]
        assert resolved["booking_id"] == booking.json()["id"]

        bad = client.get("/api/v1/checkin/resolve", params={"ref": "bogus.reference"})
        assert bad.status_code == 404
        assert bad.json()["error"] == "INVALID_REFERENCE"

    def test_delete_stall_type_requires_confirmation(self, client):
        event = create_event(client)
        stall_type = client.post(f"/api/v1/events/{event['id']}/stall-types",
                                 json={"name": "Standard", "unit_price": "2000", "quantity": 2}).json()
        type_id = stall_type["stall_type"]["id"]
        client.post(f"/api/v1/events/{event['id']}/stall-types/{type_id}/book", json={"builder_id": 1})

        blocked = client.delete(f"/api/v1/stall-types/{type_id}")
        assert blocked.status_code == 409
        assert blocked.json()["booked"] == 1

        done = client.delete(f"/api/v1/stall-types/{type_id}", params={"confirm_cascade": True})
        assert done.status_code == 200
        assert done.json()["bookings_cancelled"] == 1

    def test_not_found(self, client):
        resp = client.get("/api/v1/events/999/stall-types")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NOT_FOUND"
