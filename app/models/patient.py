from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)

    # Personal information
    name = Column(String(100), nullable=False, index=True)

    # Contact information
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    address = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="patient", passive_deletes=True)

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.name}')>"
