from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import create_app
from app.services.appointment_service import MemoryAppointmentStore
from tests.conftest import SAMPLE_BOOKING, FakeNotifier


def _book(client, **overrides) -> str:
    response = client.post("/api/appointments", json={**SAMPLE_BOOKING, **overrides})
    assert response.status_code == 201
    return response.json()["appointmentId"]


def test_booking_then_confirming_scenario(admin_client, notifier) -> None:
    response = admin_client.post("/api/appointments", json=SAMPLE_BOOKING)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Appointment booked successfully!"
    appointment_id = body["appointmentId"]

    listed = admin_client.get("/api/appointments").json()
    assert [a["id"] for a in listed] == [appointment_id]
    assert listed[0]["status"] == "pending"
    assert listed[0]["preferredCountry"] == "US"
    assert listed[0]["appointmentDate"] is None
    assert listed[0]["appointmentTime"] is None

    confirm = admin_client.put(
        f"/api/appointments/{appointment_id}/confirm",
        json={"appointmentDate": "2025-01-01", "appointmentTime": "10:00"},
    )

    assert confirm.status_code == 200
    assert confirm.json() == {"message": "Appointment confirmed and email sent!"}
    record = admin_client.get("/api/appointments").json()[0]
    assert record["status"] == "confirmed"
    assert record["appointmentDate"] == "2025-01-01"
    assert record["appointmentTime"] == "10:00"
    assert len(notifier.sent) == 1
    assert notifier.sent[0][0] == "a@x.com"


def test_confirm_succeeds_when_email_fails(store) -> None:
    app = create_app(store=store, notifier=FakeNotifier(succeed=False))
    with TestClient(app) as client:
        client.post("/api/login", json={"username": settings.admin_user, "password": settings.admin_pass})
        appointment_id = _book(client)

        response = client.put(
            f"/api/appointments/{appointment_id}/confirm",
            json={"appointmentDate": "2025-01-01", "appointmentTime": "10:00"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Appointment confirmed, but email failed to send."}
        assert client.get("/api/appointments").json()[0]["status"] == "confirmed"


def test_created_appointments_are_pending_with_unique_ids(admin_client) -> None:
    ids = {_book(admin_client, name=f"client {i}") for i in range(5)}

    listed = admin_client.get("/api/appointments").json()
    assert len(ids) == 5
    assert {a["id"] for a in listed} == ids
    assert all(a["status"] == "pending" for a in listed)


def test_created_at_is_serialized_as_utc(admin_client) -> None:
    _book(admin_client)

    created_at = admin_client.get("/api/appointments").json()[0]["createdAt"]

    assert created_at.endswith(("Z", "+00:00"))
    assert datetime.fromisoformat(created_at).utcoffset() == timedelta(0)


def test_client_supplied_status_is_ignored(admin_client) -> None:
    _book(admin_client, status="confirmed", appointmentDate="2025-01-01", appointmentTime="09:00")

    record = admin_client.get("/api/appointments").json()[0]
    assert record["status"] == "pending"
    assert record["appointmentDate"] is None
    assert record["appointmentTime"] is None


def test_booking_without_required_field_is_rejected(client, store) -> None:
    payload = {k: v for k, v in SAMPLE_BOOKING.items() if k != "email"}

    response = client.post("/api/appointments", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: email"}


def test_booking_with_blank_required_field_is_rejected(client) -> None:
    response = client.post("/api/appointments", json={**SAMPLE_BOOKING, "phone": ""})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: phone"}


def test_booking_with_whitespace_only_field_is_rejected(client) -> None:
    response = client.post("/api/appointments", json={**SAMPLE_BOOKING, "name": "   "})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: name"}


def test_booking_fields_are_trimmed(admin_client) -> None:
    _book(admin_client, name="  Jane Doe  ")

    assert admin_client.get("/api/appointments").json()[0]["name"] == "Jane Doe"


def test_list_is_newest_first(admin_client) -> None:
    first = _book(admin_client, name="first")
    second = _book(admin_client, name="second")
    third = _book(admin_client, name="third")

    listed = admin_client.get("/api/appointments").json()

    assert [a["id"] for a in listed] == [third, second, first]


def test_confirm_unknown_id_returns_404_and_creates_nothing(admin_client, notifier) -> None:
    response = admin_client.put(
        "/api/appointments/999/confirm",
        json={"appointmentDate": "2025-01-01", "appointmentTime": "10:00"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Appointment not found"}
    assert admin_client.get("/api/appointments").json() == []
    assert notifier.sent == []


def test_confirming_twice_keeps_status_and_notifies_each_time(admin_client, notifier) -> None:
    appointment_id = _book(admin_client)
    url = f"/api/appointments/{appointment_id}/confirm"

    admin_client.put(url, json={"appointmentDate": "2025-01-01", "appointmentTime": "10:00"})
    second = admin_client.put(url, json={"appointmentDate": "2025-01-02", "appointmentTime": "11:30"})

    assert second.status_code == 200
    record = admin_client.get("/api/appointments").json()[0]
    assert record["status"] == "confirmed"
    assert record["appointmentDate"] == "2025-01-02"
    assert record["appointmentTime"] == "11:30"
    assert len(notifier.sent) == 2


def test_confirm_requires_date_and_time(admin_client) -> None:
    appointment_id = _book(admin_client)

    response = admin_client.put(f"/api/appointments/{appointment_id}/confirm", json={"appointmentDate": "2025-01-01"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: appointmentTime"}
    assert admin_client.get("/api/appointments").json()[0]["status"] == "pending"


def test_delete_then_delete_again_reports_not_found(admin_client) -> None:
    keep = _book(admin_client, name="keep")
    drop = _book(admin_client, name="drop")

    first = admin_client.delete(f"/api/appointments/{drop}")
    second = admin_client.delete(f"/api/appointments/{drop}")

    assert first.status_code == 200
    assert first.json() == {"message": "Appointment deleted successfully"}
    assert second.status_code == 404
    assert second.json() == {"error": "Appointment not found"}
    assert [a["id"] for a in admin_client.get("/api/appointments").json()] == [keep]


def test_admin_routes_reject_anonymous_requests(client) -> None:
    appointment_id = _book(client)

    responses = [
        client.get("/api/appointments"),
        client.put(
            f"/api/appointments/{appointment_id}/confirm",
            json={"appointmentDate": "2025-01-01", "appointmentTime": "10:00"},
        ),
        client.delete(f"/api/appointments/{appointment_id}"),
        client.get("/api/test-email"),
    ]

    for response in responses:
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}


def test_browser_requests_are_redirected_to_login(client) -> None:
    response = client.get(
        "/api/appointments",
        headers={"Accept": "text/html,application/xhtml+xml"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/login"


class _BrokenStore(MemoryAppointmentStore):
    async def list_all(self):
        raise RuntimeError("connection reset by db-host-7")

    async def create(self, data):
        raise RuntimeError("connection reset by db-host-7")


def test_store_failures_surface_as_generic_500() -> None:
    app = create_app(store=_BrokenStore(), notifier=FakeNotifier())
    with TestClient(app) as client:
        client.post("/api/login", json={"username": settings.admin_user, "password": settings.admin_pass})

        created = client.post("/api/appointments", json=SAMPLE_BOOKING)
        listed = client.get("/api/appointments")

    assert created.status_code == 500
    assert created.json() == {"error": "Failed to book appointment"}
    assert listed.status_code == 500
    assert listed.json() == {"error": "Failed to fetch appointments"}
    assert "db-host-7" not in listed.text


def test_test_email_endpoint(admin_client, notifier) -> None:
    ok = admin_client.get("/api/test-email")

    assert ok.json() == {"ok": True}
    assert notifier.test_emails == 1

    notifier.succeed = False
    failed = admin_client.get("/api/test-email")

    assert failed.status_code == 500
    assert failed.json() == {"ok": False, "error": "Failed to send test email"}
    assert "SMTP not configured" not in failed.text


def test_health_reports_storage_backend(client) -> None:
    assert client.get("/health").json() == {"status": "ok", "storage": "memory"}
