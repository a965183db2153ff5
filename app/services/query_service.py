from sqlalchemy.orm import Session
from datetime import datetime, time, timedelta
from typing import List, Optional

from ..core.errors import ForbiddenError, ValidationError, store_operation
from ..core.security import Identity, UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..repositories.appointment_store import AppointmentStore
from ..repositories.doctor_store import DoctorTemplateStore
from ..schemas.query import AppointmentFilter, DoctorFilter
from .time_normalizer import DayPeriod, classify


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class QueryService:
    """Doctor and appointment searches.

    Each search picks the narrowest store query the supplied predicates
    allow and applies whatever is left in memory.
    """

    def __init__(self, db: Session):
        self.db = db
        self.doctors = DoctorTemplateStore(db)
        self.appointments = AppointmentStore(db)

    @store_operation
    def query_doctors(self, filters: DoctorFilter) -> List[Doctor]:
        name = _clean(filters.name)
        specialty = _clean(filters.specialty)
        period = DayPeriod.parse(filters.time) if _clean(filters.time) else None

        if name and specialty:
            doctors = self.doctors.find_by_name_and_specialty(name, specialty)
        elif specialty:
            doctors = self.doctors.find_by_specialty(specialty)
        elif name:
            doctors = self.doctors.find_by_name_like(name)
        else:
            doctors = self.doctors.find_all()

        if period is None:
            return doctors
        return [doctor for doctor in doctors if self._offers(doctor, period)]

    @store_operation
    def query_appointments(self, filters: AppointmentFilter, identity: Identity) -> List[Appointment]:
        condition = _clean(filters.condition)
        status = None
        if condition is not None:
            status = AppointmentStatus.from_condition(condition)
            if status is None:
                raise ValidationError("Condition must be 'past' or 'future'")
        period = DayPeriod.parse(filters.time) if _clean(filters.time) else None

        if identity.role == UserRole.PATIENT:
            results = self._patient_appointments(identity.account_id, status, _clean(filters.doctor_name))
        elif identity.role == UserRole.DOCTOR:
            results = self._doctor_appointments(identity.account_id, filters.date, _clean(filters.patient_name))
            if status is not None:
                results = [appt for appt in results if appt.status == status]
        elif identity.role == UserRole.ADMIN:
            results = self._all_appointments(filters, status)
        else:
            raise ForbiddenError()

        if period is not None:
            results = [
                appt for appt in results
                if classify(appt.appointment_time.strftime("%H:%M")) == period
            ]
        return sorted(results, key=lambda appt: appt.appointment_time)

    def _patient_appointments(self, patient_id, status, doctor_name) -> List[Appointment]:
        if doctor_name:
            return self.appointments.filter_by_doctor_name_and_patient_id(doctor_name, patient_id, status)
        if status is not None:
            return self.appointments.find_by_patient_id_and_status(patient_id, status)
        return self.appointments.find_by_patient_id(patient_id)

    def _doctor_appointments(self, doctor_id, day, patient_name) -> List[Appointment]:
        if day is None:
            raise ValidationError("Date is required")
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        if patient_name:
            return self.appointments.find_by_doctor_and_patient_name_in_window(doctor_id, patient_name, start, end)
        return self.appointments.find_by_doctor_in_window(doctor_id, start, end)

    def _all_appointments(self, filters: AppointmentFilter, status) -> List[Appointment]:
        results = self.appointments.find_all()
        doctor_name = _clean(filters.doctor_name)
        patient_name = _clean(filters.patient_name)
        if status is not None:
            results = [appt for appt in results if appt.status == status]
        if doctor_name:
            results = [appt for appt in results if doctor_name.lower() in appt.doctor.name.lower()]
        if patient_name:
            results = [appt for appt in results if patient_name.lower() in appt.patient.name.lower()]
        if filters.date is not None:
            results = [appt for appt in results if appt.appointment_time.date() == filters.date]
        return results

    @staticmethod
    def _offers(doctor: Doctor, period: DayPeriod) -> bool:
        return any(classify(slot) == period for slot in doctor.available_times or [])
