from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import Identity
from ...api.deps import get_bearer_token, get_patient
from ...services.auth_service import AuthService
from ...schemas.patient import PatientRegister, PatientResponse

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def register(
    patient_data: PatientRegister,
    db: Session = Depends(get_db),
):
    """Register a new patient."""
    return AuthService(db).register_patient(patient_data)

@router.get("/me", response_model=PatientResponse)
def get_patient_details(
    token: str = Depends(get_bearer_token),
    patient: Identity = Depends(get_patient),
    db: Session = Depends(get_db),
):
    """Details of the patient owning the token."""
    return AuthService(db).get_patient_details(token)
