from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from jose import JWTError
from datetime import timedelta
from typing import Optional, Union
import logging

from ..core.errors import InternalError
from ..core.security import (
    create_access_token, decode_token, Identity, UserRole
)
from ..repositories.account_store import AccountStore

logger = logging.getLogger(__name__)

class TokenService:
    """Issues and verifies stateless identity tokens.

    Tokens only carry a subject (doctor/patient email or admin username) and
    an expiry. The role is never trusted from the token: every verification
    looks the subject up again in the account table for the requested role,
    so deleting an account invalidates its outstanding tokens at once.
    """

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)

    def issue_token(self, identifier: str, expires_delta: Optional[timedelta] = None) -> str:
        """Sign a token for ``identifier``."""
        try:
            return create_access_token(identifier, expires_delta)
        except JWTError as exc:
            logger.error(f"Token signing failed: {exc}")
            raise InternalError("Could not issue token") from exc

    def extract_identifier(self, token: str) -> Optional[str]:
        """Subject of a correctly signed, unexpired token, else ``None``."""
        payload = decode_token(token)
        if payload is None:
            return None
        return payload.sub

    def resolve_identity(self, token: str, role: Union[UserRole, str]) -> Optional[Identity]:
        """Resolve ``token`` to a live account of ``role``; fails closed.

        Raises ``InternalError`` when the account lookup itself fails.
        """
        if not isinstance(role, UserRole):
            role = UserRole.parse(role)
        if role is None:
            return None

        identifier = self.extract_identifier(token)
        if identifier is None:
            return None

        try:
            if role == UserRole.ADMIN:
                account = self.accounts.find_admin_by_username(identifier)
            elif role == UserRole.DOCTOR:
                account = self.accounts.find_doctor_by_email(identifier)
            else:
                account = self.accounts.find_patient_by_email(identifier)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Account lookup failed during token verification: {exc}")
            raise InternalError("Could not verify token") from exc

        if account is None:
            return None

        return Identity(role=role, subject=identifier, account_id=account.id)

    def verify_token(self, token: str, role: Union[UserRole, str]) -> bool:
        """True only for a valid token whose subject is a current ``role`` account."""
        try:
            return self.resolve_identity(token, role) is not None
        except InternalError:
            return False
