from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import timedelta
import enum

from ..core.config import settings
from ..core.database import Base

class AppointmentStatus(enum.IntEnum):
    SCHEDULED = 0
    COMPLETED = 1

    @classmethod
    def from_condition(cls, condition: str):
        """Map a patient query condition ("past"/"future") to a status."""
        if condition is None:
            return None
        return {
            "future": cls.SCHEDULED,
            "past": cls.COMPLETED,
        }.get(condition.strip().lower())

def can_transition(current: AppointmentStatus, new: AppointmentStatus, allow_regression: bool = True) -> bool:
    """Scheduled may always move to Completed; the reverse is a policy choice."""
    if current == new:
        return True
    if current == AppointmentStatus.SCHEDULED:
        return True
    return allow_regression

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)

    # Appointment details
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(Integer, nullable=False, default=AppointmentStatus.SCHEDULED.value)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    __table_args__ = (
        # Storage backstop against double booking the same start instant
        UniqueConstraint("doctor_id", "appointment_time", name="uq_appointment_doctor_time"),
        Index("ix_appointment_doctor_time", "doctor_id", "appointment_time"),
        Index("ix_appointment_patient_status", "patient_id", "status"),
    )

    @property
    def end_time(self):
        if self.appointment_time is None:
            return None
        return self.appointment_time + timedelta(minutes=settings.APPOINTMENT_DURATION_MINUTES)

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, time='{self.appointment_time}')>"
