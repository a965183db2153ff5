import datetime
from typing import Optional
from pydantic import BaseModel

class DoctorFilter(BaseModel):
    name: Optional[str] = None
    specialty: Optional[str] = None
    time: Optional[str] = None  # "AM" or "PM"

class AppointmentFilter(BaseModel):
    condition: Optional[str] = None  # "past" or "future"
    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None
    date: Optional[datetime.date] = None
    time: Optional[str] = None  # "AM" or "PM"
