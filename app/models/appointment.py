from datetime import UTC, date, datetime
from enum import Enum
from uuid import uuid4

from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_id() -> str:
    return uuid4().hex


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class AppointmentCreate(SQLModel):
    name: str
    email: str
    phone: str
    preferred_country: str
    consultation_type: str
    message: str | None = None


class Appointment(AppointmentCreate, table=True):
    __tablename__ = "appointments"
    id: str = Field(default_factory=_new_id, primary_key=True)
    status: AppointmentStatus = Field(default=AppointmentStatus.PENDING, index=True)
    appointment_date: date | None = None
    appointment_time: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, index=True)
