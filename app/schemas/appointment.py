from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from ..models.appointment import Appointment, AppointmentStatus

class AppointmentCreate(BaseModel):
    doctor_id: int
    appointment_time: datetime
    # Only honoured for admins; patients always book for themselves
    patient_id: Optional[int] = None

class AppointmentUpdate(BaseModel):
    doctor_id: Optional[int] = None
    appointment_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None

class StatusUpdate(BaseModel):
    status: AppointmentStatus

class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    doctor_name: Optional[str] = None
    patient_id: int
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None
    appointment_time: datetime
    end_time: datetime
    status: AppointmentStatus = Field(..., description="0 = Scheduled, 1 = Completed")

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentResponse":
        doctor = appointment.doctor
        patient = appointment.patient
        return cls(
            id=appointment.id,
            doctor_id=appointment.doctor_id,
            doctor_name=doctor.name if doctor else None,
            patient_id=appointment.patient_id,
            patient_name=patient.name if patient else None,
            patient_email=patient.email if patient else None,
            patient_phone=patient.phone if patient else None,
            patient_address=patient.address if patient else None,
            appointment_time=appointment.appointment_time,
            end_time=appointment.end_time,
            status=AppointmentStatus(appointment.status),
        )
