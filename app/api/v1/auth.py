from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import UnauthorizedError, ValidationError
from ...core.security import UserRole
from ...api.deps import get_bearer_token
from ...services.auth_service import AuthService
from ...services.token_service import TokenService
from ...schemas.auth import LoginRequest, TokenResponse, TokenValidation

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/{role}/login", response_model=TokenResponse)
def login(
    role: str,
    login_data: LoginRequest,
    db: Session = Depends(get_db),
):
    """Authenticate an admin, doctor or patient and return a token."""
    user_role = UserRole.parse(role)
    if user_role is None:
        raise ValidationError(f"Unknown role '{role}'")
    return AuthService(db).login(user_role, login_data)

@router.post("/verify-token", response_model=TokenValidation)
def verify_token_endpoint(
    role: str,
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
):
    """Check that the bearer token belongs to a current account of ``role``."""
    identity = TokenService(db).resolve_identity(token, role)
    if identity is None:
        raise UnauthorizedError("Invalid or expired token")
    return TokenValidation(valid=True, role=identity.role.value, subject=identity.subject)
