"""Doctor and specialization model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from backend.database import Base


class Specialization(Base):
    """A medical specialization patients can browse by."""
    __tablename__ = "specializations"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String)


class Doctor(Base):
    """Represents a bookable doctor."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True)
    specialization_id = Column(Integer, ForeignKey("specializations.id"))
    license_number = Column(String)
    phone = Column(String)
    bio = Column(String)
    is_active = Column(Boolean, default=True)
