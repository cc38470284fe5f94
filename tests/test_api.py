"""HTTP surface: auth, tenant scoping, error rendering and the booking flow end to end"""
import uuid

import pytest
from fastapi.testclient import TestClient

from slotbook.api.dependencies import create_access_token
from slotbook.config.database import get_db
from slotbook.main import app
from slotbook.models import UserRole

from conftest import MONDAY, make_user

MONDAY_ISO = MONDAY.isoformat()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


def test_health(client):
    response = client.get("/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_login_and_me(client, db, business):
    make_user(db, "owner@example.com", UserRole.VENDOR, business.id, password="S3cret-pass")

    response = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "S3cret-pass"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["business_profile_id"] == str(business.id)

    wrong = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "nope"})
    assert wrong.status_code == 401


def test_dashboard_requires_token(client, worker):
    assert client.get(f"/api/v1/dashboard/workers/{worker.id}/schedules").status_code in (401, 403)


def test_vendor_cannot_reach_other_business(client, worker, vendor):
    response = client.get(
        f"/api/v1/dashboard/workers/{worker.id}/schedules",
        params={"business_profile_id": str(uuid.uuid4())},
        headers=auth(vendor),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_customer_cannot_use_dashboard(client, worker, customer):
    response = client.get(f"/api/v1/dashboard/workers/{worker.id}/schedules", headers=auth(customer))
    assert response.status_code == 403


def test_admin_passes_business_explicitly(client, db, worker):
    admin = make_user(db, "admin@example.com", UserRole.ADMIN)
    headers = auth(admin)

    assert client.get(f"/api/v1/dashboard/workers/{worker.id}/schedules", headers=headers).status_code == 403
    response = client.get(
        f"/api/v1/dashboard/workers/{worker.id}/schedules",
        params={"business_profile_id": str(worker.business_profile_id)},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["total"] == 0


def test_domain_errors_render_as_json(client, vendor, weekly_schedule):
    response = client.post(
        f"/api/v1/dashboard/schedules/{weekly_schedule.id}/overrides",
        json={"override_date": MONDAY_ISO, "reason": "Holiday", "is_working_day": False},
        headers=auth(vendor),
    )
    assert response.status_code == 201

    duplicate = client.post(
        f"/api/v1/dashboard/schedules/{weekly_schedule.id}/overrides",
        json={"override_date": MONDAY_ISO, "reason": "Again", "is_working_day": False},
        headers=auth(vendor),
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "conflict"
    assert duplicate.json()["retryable"] is True

    missing = client.get(f"/api/v1/dashboard/schedules/{uuid.uuid4()}", headers=auth(vendor))
    assert missing.status_code == 404
    assert missing.json()["retryable"] is False


def test_schedule_to_booking_flow(client, worker, service, vendor, customer, other_customer, enqueued):
    vendor_headers = auth(vendor)

    created = client.post(
        f"/api/v1/dashboard/workers/{worker.id}/schedules",
        json={
            "title": "Standard Week",
            "effective_start_date": "2030-01-01",
            "time_zone_id": "UTC",
            "is_default": True,
            "rule_items": [{
                "day_of_week": 0,
                "start_time": "09:00",
                "end_time": "17:00",
                "breaks": [{"name": "Lunch", "start_time": "12:00", "end_time": "13:00"}],
            }],
        },
        headers=vendor_headers,
    )
    assert created.status_code == 201
    assert enqueued == [worker.id]
    schedule_id = created.json()["id"]

    availability = client.get(
        f"/api/v1/dashboard/schedules/{schedule_id}/availability",
        params={"date_from": MONDAY_ISO, "date_to": MONDAY_ISO},
        headers=vendor_headers,
    )
    assert len(availability.json()["intervals"]) == 2

    generated = client.post(
        f"/api/v1/dashboard/workers/{worker.id}/slots/generate",
        json={
            "range_start": f"{MONDAY_ISO}T00:00:00Z",
            "range_end": "2030-01-08T00:00:00Z",
            "slot_duration_minutes": 60,
        },
        headers=vendor_headers,
    )
    assert generated.status_code == 200
    assert generated.json()["created"] == 7

    window = {"start": f"{MONDAY_ISO}T00:00:00Z", "end": "2030-01-08T00:00:00Z"}
    public = client.get(f"/api/v1/public/workers/{worker.id}/slots", params=window)
    slots = public.json()["slots"]
    assert public.json()["total"] == 7
    first_slot = slots[0]["id"]

    booking = client.post(
        "/api/v1/customer/bookings",
        json={"availability_slot_id": first_slot, "service_id": str(service.id)},
        headers=auth(customer),
    )
    assert booking.status_code == 201
    assert booking.json()["status"] == "pending_confirmation"
    booking_id = booking.json()["id"]

    taken = client.post(
        "/api/v1/customer/bookings",
        json={"availability_slot_id": first_slot, "service_id": str(service.id)},
        headers=auth(other_customer),
    )
    assert taken.status_code == 409
    assert taken.json()["detail"] == "slot is no longer available"

    after = client.get(f"/api/v1/public/workers/{worker.id}/slots", params=window)
    assert after.json()["total"] == 6

    confirmed = client.post(f"/api/v1/dashboard/bookings/{booking_id}/confirm", headers=vendor_headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    listed = client.get("/api/v1/dashboard/bookings", headers=vendor_headers)
    assert listed.json()["total"] == 1

    mine = client.get("/api/v1/customer/bookings", headers=auth(customer))
    assert mine.json()["total"] == 1


def test_booked_slot_delete_is_rejected(client, db, vendor, customer, service, open_slot):
    booking = client.post(
        "/api/v1/customer/bookings",
        json={"availability_slot_id": str(open_slot.id), "service_id": str(service.id)},
        headers=auth(customer),
    )
    assert booking.status_code == 201

    response = client.delete(f"/api/v1/dashboard/slots/{open_slot.id}", headers=auth(vendor))
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_operation"


def test_customer_cancel_flow(client, customer, other_customer, service, open_slot):
    booking_id = client.post(
        "/api/v1/customer/bookings",
        json={"availability_slot_id": str(open_slot.id), "service_id": str(service.id)},
        headers=auth(customer),
    ).json()["id"]

    stranger = client.post(
        f"/api/v1/customer/bookings/{booking_id}/cancel",
        json={"reason": "Not mine"},
        headers=auth(other_customer),
    )
    assert stranger.status_code == 404

    cancelled = client.post(
        f"/api/v1/customer/bookings/{booking_id}/cancel",
        json={"reason": "Change of plans"},
        headers=auth(customer),
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled_by_customer"
