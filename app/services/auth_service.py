from sqlalchemy.orm import Session
import logging

from ..core.errors import ConflictError, NotFoundError, UnauthorizedError, store_operation
from ..core.security import verify_password, get_password_hash, UserRole
from ..models.patient import Patient
from ..repositories.account_store import AccountStore
from ..schemas.auth import LoginRequest, TokenResponse
from ..schemas.patient import PatientRegister
from .token_service import TokenService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.tokens = TokenService(db)

    @store_operation
    def login_admin(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate an administrator by username."""
        admin = self.accounts.find_admin_by_username(login_data.identifier)
        if not admin or not verify_password(login_data.password, admin.password_hash):
            logger.warning(f"Failed admin login for '{login_data.identifier}'")
            raise UnauthorizedError("Invalid username or password")

        return TokenResponse(
            token=self.tokens.issue_token(admin.username),
            role=UserRole.ADMIN.value,
            name=admin.username,
        )

    @store_operation
    def login_doctor(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate a doctor by email."""
        doctor = self.accounts.find_doctor_by_email(login_data.identifier)
        if not doctor or not verify_password(login_data.password, doctor.password_hash):
            logger.warning(f"Failed doctor login for '{login_data.identifier}'")
            raise UnauthorizedError("Invalid email or password")

        return TokenResponse(
            token=self.tokens.issue_token(doctor.email),
            role=UserRole.DOCTOR.value,
            name=doctor.name,
        )

    @store_operation
    def login_patient(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate a patient by email."""
        patient = self.accounts.find_patient_by_email(login_data.identifier)
        if not patient or not verify_password(login_data.password, patient.password_hash):
            logger.warning(f"Failed patient login for '{login_data.identifier}'")
            raise UnauthorizedError("Invalid email or password")

        return TokenResponse(
            token=self.tokens.issue_token(patient.email),
            role=UserRole.PATIENT.value,
            name=patient.name,
        )

    def login(self, role: UserRole, login_data: LoginRequest) -> TokenResponse:
        if role == UserRole.ADMIN:
            return self.login_admin(login_data)
        if role == UserRole.DOCTOR:
            return self.login_doctor(login_data)
        return self.login_patient(login_data)

    @store_operation
    def register_patient(self, patient_data: PatientRegister) -> Patient:
        """Register a new patient."""
        # Email and phone must both be unused
        if self.accounts.patient_exists(patient_data.email, patient_data.phone):
            raise ConflictError("Patient with this email or phone already exists")

        patient = Patient(
            name=patient_data.name,
            email=patient_data.email,
            phone=patient_data.phone,
            address=patient_data.address,
            password_hash=get_password_hash(patient_data.password),
        )

        self.accounts.save(patient)
        self.db.commit()
        self.db.refresh(patient)

        logger.info(f"Registered patient_id={patient.id}")
        return patient

    @store_operation
    def get_patient_details(self, token: str) -> Patient:
        """Patient record for the subject of ``token``."""
        email = self.tokens.extract_identifier(token)
        if not email:
            raise UnauthorizedError("Invalid token")

        patient = self.accounts.find_patient_by_email(email)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient
