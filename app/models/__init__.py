from app.models.appointment import Appointment, AppointmentCreate, AppointmentStatus

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
]
