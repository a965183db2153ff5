from typing import Optional
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient


class AccountStore:
    """Lookups against the three account tables."""

    def __init__(self, db: Session):
        self.db = db

    def find_admin_by_username(self, username: str) -> Optional[Admin]:
        return self.db.execute(
            select(Admin).where(Admin.username == username)
        ).scalar_one_or_none()

    def find_doctor_by_email(self, email: str) -> Optional[Doctor]:
        return self.db.execute(
            select(Doctor).where(Doctor.email == email)
        ).scalar_one_or_none()

    def find_patient_by_email(self, email: str) -> Optional[Patient]:
        return self.db.execute(
            select(Patient).where(Patient.email == email)
        ).scalar_one_or_none()

    def get_doctor(self, doctor_id: int) -> Optional[Doctor]:
        return self.db.get(Doctor, doctor_id)

    def get_patient(self, patient_id: int) -> Optional[Patient]:
        return self.db.get(Patient, patient_id)

    def patient_exists(self, email: str, phone: str) -> bool:
        """True when a patient already uses this email or this phone."""
        found = self.db.execute(
            select(Patient.id).where(or_(Patient.email == email, Patient.phone == phone)).limit(1)
        ).first()
        return found is not None

    def doctor_email_taken(self, email: str) -> bool:
        return self.find_doctor_by_email(email) is not None

    def save(self, account):
        self.db.add(account)
        self.db.flush()
        return account
