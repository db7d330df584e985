"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from testdrive.api import create_app

from tests.conftest import DAY as BOOKING_DAY, SHOWROOM_ID

DAY = BOOKING_DAY.isoformat()
CUSTOMER = {"firstName": "Maya", "lastName": "Lin", "phone": "+1 555 010 2030"}


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


def _hold(client, start_time="10:00", day=DAY):
    response = client.post(
        "/availability/slots/hold",
        json={"showroomId": SHOWROOM_ID, "date": day, "startTime": start_time},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _book(client, start_time="10:00", **extra):
    body = {
        "showroomId": SHOWROOM_ID,
        "modelId": "model-1",
        "date": DAY,
        "startTime": start_time,
        "customerInfo": CUSTOMER,
    }
    body.update(extra)
    return client.post("/bookings", json=body)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAvailabilityRoutes:
    def test_get_slots(self, client):
        response = client.get(f"/availability/showrooms/{SHOWROOM_ID}/slots", params={"date": DAY})
        assert response.status_code == 200
        payload = response.json()
        assert payload["date"] == DAY
        assert payload["slots"][0] == {
            "time": "10:00",
            "endTime": "10:30",
            "available": True,
            "status": "available",
            "holdExpiresAt": None,
        }

    def test_get_slots_requires_date(self, client):
        response = client.get(f"/availability/showrooms/{SHOWROOM_ID}/slots")
        assert response.status_code == 422

    def test_hold_then_release(self, client):
        hold = _hold(client)
        assert hold["holdId"]
        assert hold["expiresAt"]

        slots = client.get(
            f"/availability/showrooms/{SHOWROOM_ID}/slots", params={"date": DAY}
        ).json()["slots"]
        assert slots[0]["status"] == "held"

        assert client.delete(f"/availability/slots/hold/{hold['holdId']}").status_code == 204
        assert client.delete(f"/availability/slots/hold/{hold['holdId']}").status_code == 204

        slots = client.get(
            f"/availability/showrooms/{SHOWROOM_ID}/slots", params={"date": DAY}
        ).json()["slots"]
        assert slots[0]["status"] == "available"

    def test_double_hold_conflict(self, client):
        _hold(client)
        response = client.post(
            "/availability/slots/hold",
            json={"showroomId": SHOWROOM_ID, "date": DAY, "startTime": "10:00"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "slot_unavailable"

    def test_invalid_time_rejected(self, client):
        response = client.post(
            "/availability/slots/hold",
            json={"showroomId": SHOWROOM_ID, "date": DAY, "startTime": "25:00"},
        )
        assert response.status_code == 422


class TestBookingRoutes:
    def test_create_with_hold(self, client):
        hold = _hold(client)
        response = _book(client, holdId=hold["holdId"])
        assert response.status_code == 201, response.text
        booking = response.json()
        assert booking["status"] == "CONFIRMED"
        assert booking["referenceNumber"].startswith("TD-")
        assert booking["vehicleUnitId"] == "unit-1"
        assert booking["endTime"] == "10:30"

    def test_end_before_start_rejected(self, client):
        response = _book(client, endTime="09:30")
        assert response.status_code == 422

    def test_expired_hold_error_body(self, client):
        response = _book(client, holdId="stale")
        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "hold_expired"
        assert body["detail"] == "Slot hold expired or invalid"
        assert body["request_id"].startswith("REQ-")

    def test_request_id_echoed(self, client):
        response = client.post(
            "/bookings",
            json={"showroomId": SHOWROOM_ID, "date": DAY, "startTime": "10:00", "holdId": "stale"},
            headers={"X-Request-ID": "trace-123"},
        )
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    def test_customer_required(self, client):
        response = client.post(
            "/bookings", json={"showroomId": SHOWROOM_ID, "date": DAY, "startTime": "10:00"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "customer_required"

    def test_get_and_lookup(self, client):
        created = _book(client).json()
        assert client.get(f"/bookings/{created['id']}").json()["id"] == created["id"]
        by_ref = client.get(f"/bookings/reference/{created['referenceNumber']}")
        assert by_ref.json()["id"] == created["id"]

    def test_not_found(self, client):
        response = client.get("/bookings/missing")
        assert response.status_code == 404
        assert response.json()["code"] == "booking_not_found"

    def test_list_with_filters(self, client):
        first = _book(client, "10:00").json()
        _book(client, "10:45")
        client.patch(f"/bookings/{first['id']}/cancel", json={"reason": "sick"})

        everything = client.get("/bookings").json()
        assert len(everything) == 2
        cancelled = client.get("/bookings", params={"status": "CANCELLED"}).json()
        assert [b["id"] for b in cancelled] == [first["id"]]
        assert client.get("/bookings", params={"showroomId": "sr-other"}).json() == []

    def test_lifecycle_over_http(self, client):
        booking = _book(client).json()

        hold = _hold(client, "14:30")
        moved = client.patch(
            f"/bookings/{booking['id']}/reschedule",
            json={"holdId": hold["holdId"], "date": DAY, "startTime": "14:30"},
        )
        assert moved.status_code == 200, moved.text
        assert moved.json()["startTime"] == "14:30"

        done = client.patch(f"/bookings/{booking['id']}/complete", json={"notes": "great"})
        assert done.json()["status"] == "COMPLETED"

        again = client.patch(f"/bookings/{booking['id']}/cancel")
        assert again.status_code == 409
        assert again.json()["code"] == "invalid_transition"

    def test_reschedule_end_before_start_rejected(self, client):
        booking = _book(client).json()
        response = client.patch(
            f"/bookings/{booking['id']}/reschedule",
            json={"holdId": "h", "date": DAY, "startTime": "11:00", "endTime": "10:00"},
        )
        assert response.status_code == 422

    def test_no_show(self, client):
        booking = _book(client).json()
        response = client.patch(f"/bookings/{booking['id']}/no-show")
        assert response.status_code == 200
        assert response.json()["status"] == "NO_SHOW"

    def test_slot_being_booked(self, client, service, store):
        store.acquire(service.coordinator.lock_key(SHOWROOM_ID, BOOKING_DAY, "10:00"), "x", 30_000)
        response = _book(client)
        assert response.status_code == 409
        assert response.json()["code"] == "slot_being_booked"
