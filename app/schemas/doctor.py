import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, EmailStr, Field

class DoctorCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    specialty: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., pattern=r"^\d{10}$")
    available_times: List[str] = Field(default_factory=list)

class AvailableTimesUpdate(BaseModel):
    available_times: List[str]

class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    specialty: str
    email: str
    phone: str
    available_times: List[str] = Field(default_factory=list)

class AvailabilityResponse(BaseModel):
    doctor_id: int
    date: datetime.date
    available_times: List[str]
