from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import create_app
from app.models.appointment import Appointment
from app.services.appointment_service import MemoryAppointmentStore

SAMPLE_BOOKING = {
    "name": "A",
    "email": "a@x.com",
    "phone": "123",
    "preferredCountry": "US",
    "consultationType": "study",
}


class FakeNotifier:
    """Records confirmation attempts instead of talking to SMTP."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.sent: list[tuple[str, date, str]] = []
        self.test_emails = 0

    def send_confirmation(self, appointment: Appointment, appointment_date: date, appointment_time: str) -> bool:
        self.sent.append((appointment.email, appointment_date, appointment_time))
        return self.succeed

    def send_test_email(self) -> None:
        self.test_emails += 1
        if not self.succeed:
            raise RuntimeError("SMTP not configured")

    def verify(self) -> bool:
        return self.succeed


@pytest.fixture
def store() -> MemoryAppointmentStore:
    return MemoryAppointmentStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def app(store, notifier):
    return create_app(store=store, notifier=notifier)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    response = client.post("/api/login", json={"username": settings.admin_user, "password": settings.admin_pass})
    assert response.status_code == 200
    return client
