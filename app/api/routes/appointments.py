import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from app.api.deps import get_notifier, get_store, require_admin
from app.api.schemas.appointment import (
    AppointmentPublic,
    BookAppointmentRequest,
    BookAppointmentResponse,
    ConfirmAppointmentRequest,
    MessageResponse,
)
from app.core.sessions import Session
from app.models.appointment import AppointmentCreate
from app.services.appointment_service import AppointmentStore
from app.services.email_service import Notifier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=BookAppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    store: AppointmentStore = Depends(get_store),
) -> BookAppointmentResponse:
    data = AppointmentCreate(**body.model_dump())
    try:
        appointment_id = await store.create(data)
    except Exception as e:
        logger.exception("Error creating appointment: %s", e)
        raise HTTPException(status_code=500, detail="Failed to book appointment") from e
    logger.info("Appointment %s booked (%s)", appointment_id, store.backend)
    return BookAppointmentResponse(message="Appointment booked successfully!", appointment_id=appointment_id)


@router.get("", response_model=list[AppointmentPublic])
async def list_appointments(
    store: AppointmentStore = Depends(get_store),
    _admin: Session = Depends(require_admin),
) -> list[AppointmentPublic]:
    try:
        appointments = await store.list_all()
    except Exception as e:
        logger.exception("Error fetching appointments: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch appointments") from e
    return [AppointmentPublic.model_validate(a) for a in appointments]


@router.put("/{appointment_id}/confirm", response_model=MessageResponse)
async def confirm_appointment(
    appointment_id: str,
    body: ConfirmAppointmentRequest,
    store: AppointmentStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
    _admin: Session = Depends(require_admin),
) -> MessageResponse:
    try:
        appointment = await store.confirm(appointment_id, body.appointment_date, body.appointment_time)
    except Exception as e:
        logger.exception("Error confirming appointment %s: %s", appointment_id, e)
        raise HTTPException(status_code=500, detail="Failed to confirm appointment") from e
    if appointment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")

    # The record stays confirmed whatever the mail outcome.
    sent = await run_in_threadpool(
        notifier.send_confirmation, appointment, body.appointment_date, body.appointment_time
    )
    if sent:
        return MessageResponse(message="Appointment confirmed and email sent!")
    logger.warning("Appointment %s confirmed but email to %s failed", appointment_id, appointment.email)
    return MessageResponse(message="Appointment confirmed, but email failed to send.")


@router.delete("/{appointment_id}", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: str,
    store: AppointmentStore = Depends(get_store),
    _admin: Session = Depends(require_admin),
) -> MessageResponse:
    try:
        deleted = await store.delete(appointment_id)
    except Exception as e:
        logger.exception("Error deleting appointment %s: %s", appointment_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete appointment") from e
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return MessageResponse(message="Appointment deleted successfully")
