from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.database import get_db
from ..core.errors import UnauthorizedError
from ..core.security import security, Identity, UserRole
from ..services.token_service import TokenService

def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Extract the raw token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    return credentials.credentials

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency resolving the caller to one of ``allowed_roles``."""
    def role_checker(
        token: str = Depends(get_bearer_token),
        db: Session = Depends(get_db)
    ) -> Identity:
        tokens = TokenService(db)
        for role in allowed_roles:
            identity = tokens.resolve_identity(token, role)
            if identity is not None:
                return identity
        raise UnauthorizedError("Invalid or expired token")

    return role_checker

# Specific role dependencies
get_admin = require_role([UserRole.ADMIN])
get_doctor = require_role([UserRole.DOCTOR])
get_patient = require_role([UserRole.PATIENT])
get_any_identity = require_role([UserRole.PATIENT, UserRole.DOCTOR, UserRole.ADMIN])
