from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

    @classmethod
    def parse(cls, value: str) -> Optional["UserRole"]:
        """Map a role name onto the enum, ``None`` when unknown."""
        if not value:
            return None
        value = value.strip().lower()
        if value == "administrator":
            return cls.ADMIN
        try:
            return cls(value)
        except ValueError:
            return None

class Identity(BaseModel):
    """Authenticated caller, resolved from a token against the live account tables."""
    role: UserRole
    subject: str
    account_id: int

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None

def utcnow() -> datetime:
    """Current time on the canonical clock (naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_canonical_clock(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    if not plain_password or not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

# JWT utilities
def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT binding ``subject`` until expiry."""
    issued_at = utcnow()

    if expires_delta is not None:
        expire = issued_at + expires_delta
    else:
        expire = issued_at + timedelta(days=settings.TOKEN_EXPIRE_DAYS)

    to_encode = {
        "sub": subject,
        "iat": issued_at,
        "exp": expire,
    }

    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return encoded_jwt

def decode_token(token: str) -> Optional[TokenPayload]:
    """Verify signature and expiry, returning the payload or ``None``."""
    if not token or not isinstance(token, str):
        return None
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        return None

    return TokenPayload(sub=subject, iat=payload.get("iat"), exp=payload.get("exp"))
