from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..models.doctor import Doctor


class DoctorTemplateStore:
    """Doctor records and their daily slot templates."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, doctor_id: int) -> Optional[Doctor]:
        return self.db.get(Doctor, doctor_id)

    def get_available_time_template(self, doctor_id: int) -> List[str]:
        doctor = self.get(doctor_id)
        if doctor is None or not doctor.available_times:
            return []
        return list(doctor.available_times)

    def find_all(self) -> List[Doctor]:
        return list(self.db.execute(select(Doctor).order_by(Doctor.name)).scalars())

    def find_by_name_like(self, name: str) -> List[Doctor]:
        stmt = (
            select(Doctor)
            .where(func.lower(Doctor.name).contains(name.lower(), autoescape=True))
            .order_by(Doctor.name)
        )
        return list(self.db.execute(stmt).scalars())

    def find_by_specialty(self, specialty: str) -> List[Doctor]:
        stmt = (
            select(Doctor)
            .where(func.lower(Doctor.specialty) == specialty.lower())
            .order_by(Doctor.name)
        )
        return list(self.db.execute(stmt).scalars())

    def find_by_name_and_specialty(self, name: str, specialty: str) -> List[Doctor]:
        stmt = (
            select(Doctor)
            .where(
                func.lower(Doctor.name).contains(name.lower(), autoescape=True),
                func.lower(Doctor.specialty) == specialty.lower(),
            )
            .order_by(Doctor.name)
        )
        return list(self.db.execute(stmt).scalars())

    def save(self, doctor: Doctor) -> Doctor:
        self.db.add(doctor)
        self.db.flush()
        return doctor

    def delete(self, doctor: Doctor) -> None:
        self.db.delete(doctor)
        self.db.flush()
