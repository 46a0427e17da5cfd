import os
from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('EMAIL_ENABLED', 'false')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402,F401
from backend.models.doctor import Doctor, Specialization  # noqa: E402
from backend.models.schedule import DoctorSchedule  # noqa: E402
from backend.models.user import ADMIN_ROLE, PATIENT_ROLE, User  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clinic(db):
    """One cardiologist working 09:00-17:00 every day, one patient, one admin."""
    specialization = Specialization(name='Cardiology')
    db.add(specialization)
    db.flush()

    doctor = Doctor(
        name='Abebe Kebede',
        email='doctor@example.com',
        specialization_id=specialization.id,
        is_active=True,
    )
    patient = User(name='Sara Tesfaye', email='patient@example.com', hashed_password='', role=PATIENT_ROLE)
    admin = User(name='Clinic Admin', email='admin@example.com', hashed_password='', role=ADMIN_ROLE)
    db.add_all([doctor, patient, admin])
    db.flush()

    for day_of_week in range(7):
        db.add(
            DoctorSchedule(
                doctor_id=doctor.id,
                day_of_week=day_of_week,
                start_time=time(9, 0),
                end_time=time(17, 0),
                slot_duration=30,
                break_start=time(13, 0),
                break_end=time(13, 30),
            )
        )
    db.commit()

    return {
        'specialization': specialization,
        'doctor': doctor,
        'patient': patient,
        'admin': admin,
    }
