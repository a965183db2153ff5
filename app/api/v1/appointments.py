from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.errors import ForbiddenError, ValidationError
from ...core.security import Identity, UserRole
from ...api.deps import get_any_identity, get_bearer_token, get_patient, require_role
from ...services.booking_service import BookingService
from ...services.query_service import QueryService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentUpdate, StatusUpdate
)
from ...schemas.query import AppointmentFilter

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    condition: Optional[str] = None,
    doctor_name: Optional[str] = None,
    patient_name: Optional[str] = None,
    date: Optional[date] = None,
    time: Optional[str] = None,
    identity: Identity = Depends(get_any_identity),
    db: Session = Depends(get_db),
):
    """Appointments visible to the caller, filtered by the query parameters."""
    filters = AppointmentFilter(
        condition=condition,
        doctor_name=doctor_name,
        patient_name=patient_name,
        date=date,
        time=time,
    )
    appointments = QueryService(db).query_appointments(filters, identity)
    return [AppointmentResponse.from_appointment(appt) for appt in appointments]

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    appointment_data: AppointmentCreate,
    identity: Identity = Depends(require_role([UserRole.PATIENT, UserRole.ADMIN])),
    db: Session = Depends(get_db),
):
    """Book an appointment (patients book for themselves)."""
    if identity.role == UserRole.PATIENT:
        patient_id = identity.account_id
    else:
        patient_id = appointment_data.patient_id
        if patient_id is None:
            raise ValidationError("patient_id is required")

    appointment = BookingService(db).book(
        appointment_data.doctor_id, patient_id, appointment_data.appointment_time
    )
    return AppointmentResponse.from_appointment(appointment)

@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    update_data: AppointmentUpdate,
    identity: Identity = Depends(require_role([UserRole.PATIENT, UserRole.ADMIN])),
    db: Session = Depends(get_db),
):
    """Move an appointment to another doctor or time."""
    booking = BookingService(db)
    existing = booking.get_appointment(appointment_id)
    if identity.role == UserRole.PATIENT and existing.patient_id != identity.account_id:
        raise ForbiddenError("You can only update your own appointments")

    appointment = booking.reschedule(
        appointment_id,
        doctor_id=update_data.doctor_id,
        appointment_time=update_data.appointment_time,
        status=update_data.status,
    )
    return AppointmentResponse.from_appointment(appointment)

@router.delete("/{appointment_id}")
def cancel_appointment(
    appointment_id: int,
    token: str = Depends(get_bearer_token),
    patient: Identity = Depends(get_patient),
    db: Session = Depends(get_db),
):
    """Cancel one of the caller's own appointments."""
    BookingService(db).cancel(appointment_id, token)
    return {"message": "Appointment canceled successfully"}

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def change_status(
    appointment_id: int,
    status_data: StatusUpdate,
    identity: Identity = Depends(require_role([UserRole.DOCTOR, UserRole.ADMIN])),
    db: Session = Depends(get_db),
):
    """Set an appointment's status (doctor of the appointment or admin)."""
    booking = BookingService(db)
    existing = booking.get_appointment(appointment_id)
    if identity.role == UserRole.DOCTOR and existing.doctor_id != identity.account_id:
        raise ForbiddenError("You can only update your own appointments")

    appointment = booking.change_status(appointment_id, status_data.status)
    return AppointmentResponse.from_appointment(appointment)
