from pydantic import BaseModel, Field

class LoginRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email for doctors and patients, username for admins")
    password: str = Field(..., min_length=1)

class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    role: str
    name: str

class TokenValidation(BaseModel):
    valid: bool
    role: str
    subject: str
