from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.appointment import AppointmentStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookAppointmentRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    preferred_country: str = Field(min_length=1)
    consultation_type: str = Field(min_length=1)
    message: str | None = None


class BookAppointmentResponse(CamelModel):
    message: str
    appointment_id: str


class ConfirmAppointmentRequest(CamelModel):
    appointment_date: date
    appointment_time: str = Field(min_length=1)


class AppointmentPublic(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    preferred_country: str
    consultation_type: str
    message: str | None = None
    status: AppointmentStatus
    appointment_date: date | None = None
    appointment_time: str | None = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Stored timestamps are naive UTC.
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class MessageResponse(BaseModel):
    message: str
