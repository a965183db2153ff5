from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.errors import ConflictError, NotFoundError, store_operation
from ..core.security import get_password_hash
from ..models.doctor import Doctor
from ..repositories.account_store import AccountStore
from ..repositories.appointment_store import AppointmentStore
from ..repositories.doctor_store import DoctorTemplateStore
from ..schemas.doctor import DoctorCreate

logger = logging.getLogger(__name__)

class DoctorService:
    """Administrator-side doctor management."""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.doctors = DoctorTemplateStore(db)
        self.appointments = AppointmentStore(db)

    @store_operation
    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.doctors.get(doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor not found")
        return doctor

    @store_operation
    def create_doctor(self, doctor_data: DoctorCreate) -> Doctor:
        if self.accounts.doctor_email_taken(doctor_data.email):
            raise ConflictError("Doctor already exists")

        doctor = Doctor(
            name=doctor_data.name,
            specialty=doctor_data.specialty,
            email=doctor_data.email,
            phone=doctor_data.phone,
            password_hash=get_password_hash(doctor_data.password),
            available_times=list(doctor_data.available_times),
        )
        self.doctors.save(doctor)
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Created doctor_id={doctor.id}")
        return doctor

    @store_operation
    def update_available_times(self, doctor_id: int, available_times: List[str]) -> Doctor:
        doctor = self.doctors.get(doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor not found")

        doctor.available_times = list(available_times)
        self.doctors.save(doctor)
        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    @store_operation
    def delete_doctor(self, doctor_id: int) -> None:
        """Delete a doctor together with all of their appointments."""
        doctor = self.doctors.get(doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor not found")

        removed = self.appointments.delete_all_by_doctor(doctor_id)
        self.doctors.delete(doctor)
        self.db.commit()

        logger.info(f"Deleted doctor_id={doctor_id} and {removed} appointment(s)")
