from sqlalchemy.orm import Session
from datetime import date, datetime, time, timedelta
from typing import List

from ..core.errors import store_operation
from ..repositories.appointment_store import AppointmentStore
from ..repositories.doctor_store import DoctorTemplateStore
from .time_normalizer import CanonicalTime, SlotTime, normalize, sort_key

class AvailabilityService:
    def __init__(self, db: Session):
        self.db = db
        self.doctors = DoctorTemplateStore(db)
        self.appointments = AppointmentStore(db)

    @store_operation
    def get_availability(self, doctor_id: int, day: date) -> List[SlotTime]:
        """Free template slots of a doctor on ``day``, earliest first.

        A booking removes only the slot matching its exact start minute; an
        unknown doctor or an empty template yields an empty list.
        """
        template = self.doctors.get_available_time_template(doctor_id)
        if not template:
            return []

        day_start = datetime.combine(day, time.min)
        booked = {
            CanonicalTime(appt.appointment_time.hour, appt.appointment_time.minute)
            for appt in self.appointments.find_by_doctor_in_window(
                doctor_id, day_start, day_start + timedelta(days=1)
            )
        }

        free = []
        for slot in map(normalize, template):
            if slot in booked or slot in free:
                continue
            free.append(slot)

        return sorted(free, key=sort_key)
