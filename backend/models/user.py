"""User model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base

PATIENT_ROLE = 'patient'
ADMIN_ROLE = 'admin'


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(String, default=PATIENT_ROLE)  # patient/doctor/admin
