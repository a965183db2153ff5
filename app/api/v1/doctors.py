from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import Identity
from ...api.deps import get_admin
from ...services.availability_service import AvailabilityService
from ...services.doctor_service import DoctorService
from ...services.query_service import QueryService
from ...schemas.doctor import (
    AvailabilityResponse, AvailableTimesUpdate, DoctorCreate, DoctorResponse
)
from ...schemas.query import DoctorFilter

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse])
def list_doctors(
    name: Optional[str] = None,
    specialty: Optional[str] = None,
    time: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Search doctors by name, specialty and AM/PM availability."""
    filters = DoctorFilter(name=name, specialty=specialty, time=time)
    return QueryService(db).query_doctors(filters)

@router.get("/{doctor_id}/availability", response_model=AvailabilityResponse)
def get_availability(
    doctor_id: int,
    date: date,
    db: Session = Depends(get_db),
):
    """Free slots of a doctor on a given date."""
    slots = AvailabilityService(db).get_availability(doctor_id, date)
    return AvailabilityResponse(
        doctor_id=doctor_id,
        date=date,
        available_times=[str(slot) for slot in slots],
    )

@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(
    doctor_data: DoctorCreate,
    db: Session = Depends(get_db),
    admin: Identity = Depends(get_admin),
):
    """Add a doctor (admin only)."""
    return DoctorService(db).create_doctor(doctor_data)

@router.put("/{doctor_id}/available-times", response_model=DoctorResponse)
def update_available_times(
    doctor_id: int,
    times: AvailableTimesUpdate,
    db: Session = Depends(get_db),
    admin: Identity = Depends(get_admin),
):
    """Replace a doctor's daily slot template (admin only)."""
    return DoctorService(db).update_available_times(doctor_id, times.available_times)

@router.delete("/{doctor_id}")
def delete_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
    admin: Identity = Depends(get_admin),
):
    """Delete a doctor and their appointments (admin only)."""
    DoctorService(db).delete_doctor(doctor_id)
    return {"message": "Doctor deleted successfully"}
