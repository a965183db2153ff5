from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import Session, joinedload

from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient


class AppointmentStore:
    """Persistence for appointments.

    Window queries are half-open: ``start <= appointment_time < end``.
    """

    def __init__(self, db: Session):
        self.db = db

    def _select(self):
        return (
            select(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.patient))
            .order_by(Appointment.appointment_time)
        )

    def save(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def delete(self, appointment: Appointment) -> None:
        self.db.delete(appointment)
        self.db.flush()

    def delete_all_by_doctor(self, doctor_id: int) -> int:
        result = self.db.execute(
            delete(Appointment).where(Appointment.doctor_id == doctor_id)
        )
        return result.rowcount or 0

    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id)

    def find_all(self) -> List[Appointment]:
        return list(self.db.execute(self._select()).unique().scalars())

    def find_by_doctor_in_window(
        self,
        doctor_id: int,
        start: datetime,
        end: datetime,
        status: Optional[AppointmentStatus] = None,
        exclude_id: Optional[int] = None,
    ) -> List[Appointment]:
        stmt = self._select().where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_time >= start,
            Appointment.appointment_time < end,
        )
        if status is not None:
            stmt = stmt.where(Appointment.status == int(status))
        if exclude_id is not None:
            stmt = stmt.where(Appointment.id != exclude_id)
        return list(self.db.execute(stmt).unique().scalars())

    def find_by_doctor_and_patient_name_in_window(
        self, doctor_id: int, patient_name: str, start: datetime, end: datetime
    ) -> List[Appointment]:
        stmt = (
            self._select()
            .join(Appointment.patient)
            .where(
                Appointment.doctor_id == doctor_id,
                func.lower(Patient.name).contains(patient_name.lower(), autoescape=True),
                Appointment.appointment_time >= start,
                Appointment.appointment_time < end,
            )
        )
        return list(self.db.execute(stmt).unique().scalars())

    def find_by_patient_id(self, patient_id: int) -> List[Appointment]:
        stmt = self._select().where(Appointment.patient_id == patient_id)
        return list(self.db.execute(stmt).unique().scalars())

    def find_by_patient_id_and_status(self, patient_id: int, status: AppointmentStatus) -> List[Appointment]:
        stmt = self._select().where(
            Appointment.patient_id == patient_id,
            Appointment.status == int(status),
        )
        return list(self.db.execute(stmt).unique().scalars())

    def filter_by_doctor_name_and_patient_id(
        self, doctor_name: str, patient_id: int, status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        stmt = (
            self._select()
            .join(Appointment.doctor)
            .where(
                Appointment.patient_id == patient_id,
                func.lower(Doctor.name).contains(doctor_name.lower(), autoescape=True),
            )
        )
        if status is not None:
            stmt = stmt.where(Appointment.status == int(status))
        return list(self.db.execute(stmt).unique().scalars())

    def update_status(self, appointment_id: int, status: AppointmentStatus) -> int:
        result = self.db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .values(status=int(status))
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    def lock_doctor_calendar(self, doctor_id: int) -> bool:
        """Take the per-doctor write lock for the current transaction.

        Bumping ``calendar_version`` row-locks the doctor on PostgreSQL and
        takes the database write lock on SQLite, so concurrent bookings for
        one doctor run their conflict check one after another. Returns
        ``False`` when the doctor does not exist.
        """
        result = self.db.execute(
            update(Doctor)
            .where(Doctor.id == doctor_id)
            .values(calendar_version=Doctor.calendar_version + 1)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0
